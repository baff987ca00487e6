import logging
from typing import Any, Callable, Dict, List, Optional

from app.core.exceptions import ProfileInactive, ProfileNotFound
from app.modules.access.schemas import AccessDecision, GuardState

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "Acesso negado. Você não tem permissão para acessar esta página."


class AccessGuard:
    """Per-route gate: pending -> granted | denied.

    resolve_user returns the current profile (or None when signed out);
    route_allowed answers whether a profile may view a route through its
    module permissions. Either callable raising leaves the guard denied.
    """

    def __init__(
        self,
        resolve_user: Callable[[], Optional[Dict[str, Any]]],
        route_allowed: Callable[[Dict[str, Any], str], bool],
    ):
        self.resolve_user = resolve_user
        self.route_allowed = route_allowed
        self.state = GuardState.PENDING

    def evaluate(
        self,
        route: str,
        allowed_roles: Optional[List[str]] = None,
        fallback: Optional[str] = None,
    ) -> AccessDecision:
        self.state = GuardState.PENDING
        allowed_roles = allowed_roles or []
        role = None
        reason = ACCESS_DENIED_MESSAGE

        try:
            user = self.resolve_user()
            if user:
                role = user.get("role")
                if not allowed_roles:
                    self.state = GuardState.GRANTED
                elif role in allowed_roles:
                    self.state = GuardState.GRANTED
                elif self.route_allowed(user, route):
                    self.state = GuardState.GRANTED
        except (ProfileNotFound, ProfileInactive) as e:
            logger.info(f"Access to {route} refused: {e.detail}")
            reason = e.detail
        except Exception as e:
            logger.error(f"Access check failed for {route}: {e}")

        if self.state != GuardState.GRANTED:
            self.state = GuardState.DENIED
            return AccessDecision(
                state=self.state,
                route=route,
                role=role,
                fallback=fallback,
                message=None if fallback else reason,
            )
        return AccessDecision(state=self.state, route=route, role=role)

"""
Sidebar composition from static entries and the user's allowed modules.
"""

import logging
from typing import Iterable, List, Optional

from app.config.permissions_config import BASE_NAVIGATION, SETTINGS_NAVIGATION
from app.config.settings import settings
from app.modules.access.schemas import AllowedModule, NavigationIcon, NavigationItem, DEFAULT_ICON

logger = logging.getLogger(__name__)


def resolve_icon(name: Optional[str]) -> NavigationIcon:
    """Map a stored icon name to a known icon. Unknown names raise ValueError."""
    if not name:
        raise ValueError("icon name is empty")
    return NavigationIcon(name)


def _icon_or_default(name: Optional[str], url: str) -> NavigationIcon:
    try:
        return resolve_icon(name)
    except ValueError:
        logger.warning(f"Unknown icon {name!r} for {url}, using {DEFAULT_ICON.value}")
        return DEFAULT_ICON


def compose_navigation(
    allowed_modules: Iterable[AllowedModule],
    role: str,
    base_items: Optional[List[dict]] = None,
    reserved_routes: Optional[List[str]] = None,
) -> List[NavigationItem]:
    """Static items first, then allowed modules, then the admin settings entry.

    Module rows whose url is already taken, or is a reserved static route,
    are skipped so every url appears once.
    """
    if base_items is None:
        base_items = BASE_NAVIGATION
    if reserved_routes is None:
        reserved_routes = settings.get_reserved_routes_list()

    is_admin_master = role == settings.admin_master_role
    reserved = set(reserved_routes)
    if is_admin_master:
        # the settings entry always belongs to the static item
        reserved.add(settings.settings_route)

    items: List[NavigationItem] = []
    seen = set()

    for base in base_items:
        if base["url"] in seen:
            continue
        seen.add(base["url"])
        items.append(NavigationItem(
            title=base["title"],
            url=base["url"],
            icon=_icon_or_default(base.get("icon"), base["url"]),
        ))

    for module in allowed_modules:
        if not module.is_allowed:
            continue
        url = module.module_url
        if url in seen or url in reserved:
            continue
        seen.add(url)
        items.append(NavigationItem(
            title=module.module_title,
            url=url,
            icon=_icon_or_default(module.module_icon, url),
        ))

    if is_admin_master and settings.settings_route not in seen:
        items.append(NavigationItem(
            title=SETTINGS_NAVIGATION["title"],
            url=settings.settings_route,
            icon=NavigationIcon(SETTINGS_NAVIGATION["icon"]),
        ))

    return items

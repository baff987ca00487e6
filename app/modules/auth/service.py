import logging
from supabase import Client
from app.modules.auth.schemas import LoginRequest, TokenResponse
from app.core.exceptions import AuthenticationMissing, ProfileNotFound, ProfileInactive
from fastapi import HTTPException
from typing import Dict, Any

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Tokens are stateless JWTs; this only clears the client session
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Exchange a bearer token for the Supabase Auth identity"""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token rejected by Supabase Auth: {e}")
            raise AuthenticationMissing()
        if not user_response or not user_response.user:
            raise AuthenticationMissing()
        user = user_response.user
        return {
            "id": user.id,
            "email": user.email,
        }

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        """Load the profile row owned by an auth user"""
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            logger.warning(f"Authenticated user {user_id} has no profile")
            raise ProfileNotFound()

        profile = result.data[0]
        if profile.get("active") is False:
            raise ProfileInactive()
        return profile

    def resolve_session(self, token: str) -> Dict[str, Any]:
        """Token -> identity -> profile. Any backend failure is an auth failure."""
        identity = self.get_current_user(token)
        try:
            profile = self.get_profile(identity["id"])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading profile for {identity['id']}: {e}")
            raise AuthenticationMissing("Não foi possível validar a sessão")
        return {
            **profile,
            "user_id": identity["id"],
            "email": profile.get("email") or identity["email"],
        }

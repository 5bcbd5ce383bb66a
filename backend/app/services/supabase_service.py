"""
Supabase Auth gateway: account creation, password sign-in and session revocation.
Contacts and interactions live in crm_service; this module only deals with identity.
"""

import logging
from typing import Any, Dict

from fastapi import HTTPException, status
from supabase import Client, create_client

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class SupabaseService:
    """
    Wraps two clients: auth_client (anon key) for the user-facing sign-up and
    sign-in flows, and client (service key) for admin calls such as revoking a
    session. Both can be injected.
    """

    def __init__(self, client: Client | None = None, auth_client: Client | None = None) -> None:
        if client is None or auth_client is None:
            settings = get_settings()
            client = client or create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
            auth_client = auth_client or create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        self.client: Client = client
        self.auth_client: Client = auth_client

    async def sign_up(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        """
        Create an account. The session is None when the project requires email
        confirmation before the first sign-in.
        """
        try:
            response = self.auth_client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"full_name": full_name}},
                }
            )
        except Exception as e:
            logger.error("Sign up failed for %s: %s", email, str(e))
            if "already registered" in str(e).lower():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Email already registered",
                ) from e
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Sign up failed, please try again",
            ) from e

        if not response.user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to create user",
            )
        logger.info("sign_up: user_id=%s confirmed=%s", response.user.id, response.session is not None)
        return {"user": response.user, "session": response.session}

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange email and password for a session. Any failure is a 401."""
        try:
            response = self.auth_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning("Sign in failed for %s: %s", email, str(e))
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            ) from e

        if not response.user or not response.session:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        return {"user": response.user, "session": response.session}

    async def sign_out(self, access_token: str) -> None:
        """Revoke every refresh token of the session the access token belongs to."""
        try:
            self.client.auth.admin.sign_out(access_token)
        except Exception as e:
            logger.error("Sign out failed: %s", str(e))
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Could not revoke the session, please try again",
            ) from e


def get_supabase_service() -> SupabaseService:
    """Dependency for FastAPI."""
    return SupabaseService()

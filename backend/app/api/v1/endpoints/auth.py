"""
Auth API: signup, signin, signout, me.
Supabase Auth issues the tokens; every other route trusts their sub claim.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from app.core.security import get_current_user, security
from app.schemas.auth import (
    AuthResponse,
    SignInRequest,
    SignUpRequest,
    UserProfile,
)
from app.schemas.common import MessageResponse
from app.services.supabase_service import SupabaseService, get_supabase_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _user_profile(user: Any) -> UserProfile:
    """Build UserProfile from a Supabase Auth user object."""
    metadata = getattr(user, "user_metadata", None) or {}
    return UserProfile(
        id=str(user.id),
        email=getattr(user, "email", None),
        full_name=metadata.get("full_name"),
        created_at=getattr(user, "created_at", None),
    )


def _auth_response(result: Dict[str, Any]) -> AuthResponse:
    session = result.get("session")
    user = result["user"]
    if session is None:
        # Email confirmation pending: user exists but has no session yet
        return AuthResponse(confirmation_required=True, user=_user_profile(user))
    return AuthResponse(
        access_token=session.access_token,
        token_type="bearer",
        expires_in=session.expires_in,
        expires_at=session.expires_at,
        refresh_token=session.refresh_token,
        user=_user_profile(user),
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    request: SignUpRequest,
    supabase: SupabaseService = Depends(get_supabase_service),
):
    """
    Register a new user.

    - **email**: Valid email address
    - **password**: Minimum 8 characters
    - **full_name**: User's full name
    """
    result = await supabase.sign_up(
        email=request.email,
        password=request.password,
        full_name=request.full_name,
    )
    logger.info("User signed up: %s", result["user"].id)
    return _auth_response(result)


@router.post("/signin", response_model=AuthResponse)
async def signin(
    request: SignInRequest,
    supabase: SupabaseService = Depends(get_supabase_service),
):
    """
    Sign in an existing user.

    - **email**: Registered email address
    - **password**: User's password
    """
    result = await supabase.sign_in(
        email=request.email,
        password=request.password,
    )
    return _auth_response(result)


@router.post("/signout", response_model=MessageResponse)
async def signout(
    current_user: Dict[str, Any] = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(security),
    supabase: SupabaseService = Depends(get_supabase_service),
):
    """
    Sign out the current user by revoking the session behind the bearer token.
    Requires authentication. Answers 502 if Supabase could not revoke it.
    """
    await supabase.sign_out(access_token=credentials.credentials)

    return MessageResponse(
        message="Successfully signed out",
        success=True,
    )


@router.get("/me", response_model=UserProfile)
async def get_current_user_profile(
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    """
    Get the current user from the token claims.
    Requires authentication.
    """
    metadata = current_user.get("user_metadata") or {}
    return UserProfile(
        id=current_user["sub"],
        email=current_user.get("email"),
        full_name=metadata.get("full_name"),
    )


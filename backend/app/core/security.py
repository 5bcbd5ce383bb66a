"""
Security utilities: Supabase JWT validation, dependency injection for auth.
The route guard for every CRM endpoint is get_current_user_id.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings

# Supabase Auth signs access tokens with HS256 and audience "authenticated"
ALGORITHM = "HS256"
AUDIENCE = "authenticated"
ACCESS_TOKEN_EXPIRE_MINUTES = 60

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token shaped like a Supabase access token (used by local tooling and tests)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "aud": AUDIENCE})
    return jwt.encode(to_encode, get_settings().SUPABASE_JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict[str, Any]]:
    secret = get_settings().SUPABASE_JWT_SECRET
    if not secret:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError:
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict[str, Any]:
    """Dependency: require auth. Raises 401 if missing or invalid."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_current_user_id(
    current_user: dict[str, Any] = Depends(get_current_user),
) -> str:
    """Dependency: the owning-user id (JWT sub). Passed explicitly into every data access call."""
    user_id = current_user.get("sub")
    if not isinstance(user_id, str) or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id

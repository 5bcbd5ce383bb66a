"""
Auth-related Pydantic schemas (sign up, sign in, current user, tokens).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SignUpRequest(BaseModel):
    """Request body for user registration."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "email": "ada@example.com",
                    "password": "securePass123",
                    "full_name": "Ada Lovelace",
                }
            ]
        }
    )

    email: EmailStr
    password: str = Field(..., min_length=8, description="At least 8 characters")
    full_name: str = Field(..., min_length=2)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class SignInRequest(BaseModel):
    """Request body for sign in."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "email": "ada@example.com",
                    "password": "securePass123",
                }
            ]
        }
    )

    email: EmailStr
    password: str


class UserProfile(BaseModel):
    """The signed-in user as reported by Supabase Auth."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "id": "550e8400-e29b-41d4-a716-446655440000",
                    "email": "ada@example.com",
                    "full_name": "Ada Lovelace",
                    "created_at": "2025-01-15T10:30:00Z",
                }
            ]
        },
    )

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    """
    Response after sign up or sign in. Token fields are empty after sign up when
    the project requires email confirmation before the first session.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "token_type": "bearer",
                    "expires_in": 3600,
                    "expires_at": 1736932200,
                    "refresh_token": "v1.MRk...",
                    "confirmation_required": False,
                    "user": {
                        "id": "550e8400-e29b-41d4-a716-446655440000",
                        "email": "ada@example.com",
                        "full_name": "Ada Lovelace",
                        "created_at": "2025-01-15T10:30:00Z",
                    },
                }
            ]
        }
    )

    access_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    refresh_token: Optional[str] = None
    confirmation_required: bool = False
    user: UserProfile


"""
Contact schema (API contract for /api/v1/contacts).
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _blank_to_none(v: object) -> object:
    """An empty or whitespace-only email means "no email" (clears it on update)."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


class ContactBase(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    birthday: date | None = None
    notes: str | None = None


class Contact(ContactBase):
    """Response schema for a stored contact (owner id is not exposed)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    interactions: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ContactCreate(BaseModel):
    """Request body for creating a contact. Only name is required."""
    name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr | None = None
    phone: str | None = None
    birthday: date | None = Field(None, description="YYYY-MM-DD")
    notes: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v: object) -> object:
        return _blank_to_none(v)


class ContactUpdate(BaseModel):
    """Request body for partial update. Send null (or an empty string) to clear an optional field."""
    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    birthday: date | None = None
    notes: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v: object) -> object:
        return _blank_to_none(v)


class ContactListResponse(BaseModel):
    """List of contacts."""
    contacts: list[Contact]


class ContactDetailResponse(Contact):
    """Single contact detail (same as Contact; alias for clarity)."""
    pass

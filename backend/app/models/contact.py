"""
Pydantic models for public.contacts (Supabase).
Stored columns are camelCase: userId, name, email, phone, birthday, notes,
interactions, createdAt, updatedAt.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class ContactBase(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    birthday: date | None = None
    notes: str | None = None


class ContactCreate(ContactBase):
    user_id: str


class ContactUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    birthday: date | None = None
    notes: str | None = None


class ContactInDB(ContactBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    interactions: int = 0
    created_at: datetime
    updated_at: datetime


class Contact(ContactInDB):
    pass

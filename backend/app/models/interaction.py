"""
Pydantic models for public.interactions (Supabase).
Stored columns are camelCase: userId, contactId, contactName, title, notes,
date, createdAt, updatedAt.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class InteractionBase(BaseModel):
    title: str
    notes: str | None = None  # rich text (HTML)
    date: datetime
    contact_id: str | None = None
    contact_name: str | None = None


class InteractionCreate(InteractionBase):
    user_id: str


class InteractionUpdate(BaseModel):
    """Partial update. user_id is deliberately absent: ownership never changes."""
    title: str | None = None
    notes: str | None = None
    date: datetime | None = None
    contact_id: str | None = None
    contact_name: str | None = None


class InteractionInDB(InteractionBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime


class Interaction(InteractionInDB):
    pass

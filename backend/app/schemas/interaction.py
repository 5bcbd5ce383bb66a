"""
Interaction schema (API contract for /api/v1/interactions).
"""

import html
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

NOTES_PREVIEW_LENGTH = 100

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_TAG_RE = re.compile(r"</?(p|div|br|li|h[1-6])\b[^>]*>", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def notes_preview(notes: str | None, max_length: int = NOTES_PREVIEW_LENGTH) -> str | None:
    """Plain-text preview of rich-text notes: markup stripped, truncated with '...'."""
    if not notes:
        return None
    text = _BLOCK_TAG_RE.sub(" ", notes)
    text = html.unescape(_TAG_RE.sub("", text))
    text = _WS_RE.sub(" ", text).strip()
    if not text:
        return None
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


class InteractionBase(BaseModel):
    title: str
    notes: str | None = None  # HTML from the rich-text editor
    date: datetime
    contact_id: str | None = None
    contact_name: str | None = None


class InteractionCreate(BaseModel):
    """
    Request body for logging an interaction. contact_id is optional; a
    contact_name without contact_id links (or creates) the contact of that name.
    """
    title: str = Field(..., min_length=1)
    notes: str | None = None
    date: datetime = Field(..., description="Occurrence date (YYYY-MM-DD or ISO datetime)")
    contact_id: str | None = None
    contact_name: str | None = None


class InteractionUpdate(BaseModel):
    """Request body for partial update."""
    title: str | None = None
    notes: str | None = None
    date: datetime | None = None
    contact_id: str | None = None
    contact_name: str | None = None


class Interaction(InteractionBase):
    """Response schema for a stored interaction, with a plain-text notes preview."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    notes_preview: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InteractionDetailResponse(Interaction):
    """Single interaction; contact_exists is False when contact_id points at a deleted contact."""
    contact_exists: bool = False


class InteractionListResponse(BaseModel):
    """List of interactions, newest first."""
    interactions: list[Interaction]

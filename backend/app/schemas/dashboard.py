"""
Dashboard schemas (home page: recent interactions and upcoming birthdays).
"""

from datetime import date

from pydantic import BaseModel

from app.schemas.interaction import Interaction


class UpcomingBirthday(BaseModel):
    contact_id: str
    name: str
    birthday: date
    next_birthday: date
    days_until: int


class DashboardResponse(BaseModel):
    """Response for GET /dashboard."""
    recent_interactions: list[Interaction]
    page: int = 1
    page_size: int = 10
    total_interactions: int = 0
    has_more: bool = False
    contacts_count: int = 0
    upcoming_birthdays: list[UpcomingBirthday] = []

"""
Dashboard endpoint (home page): recent interactions with "load more" paging,
contact count and upcoming birthdays.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from app.api.v1.endpoints.interactions import interaction_to_response
from app.core.security import get_current_user_id
from app.schemas.dashboard import DashboardResponse, UpcomingBirthday
from app.services.crm_service import UPCOMING_BIRTHDAY_DAYS, CrmService, get_crm_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

RECENT_INTERACTIONS_PAGE_SIZE = 10


@router.get(
    "",
    response_model=DashboardResponse,
    summary="Get dashboard",
    description="Recent interactions (pages are cumulative, like 'Load more'), contact count and birthdays in the next days.",
)
async def get_dashboard(
    page: int = Query(1, ge=1, description="Number of pages of recent interactions to include"),
    birthday_days: int = Query(UPCOMING_BIRTHDAY_DAYS, ge=0, le=366, description="Birthday look-ahead in days"),
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> DashboardResponse:
    """GET /api/v1/dashboard"""
    interactions = await crm.get_interactions(user_id)
    visible = interactions[: page * RECENT_INTERACTIONS_PAGE_SIZE]
    contacts = await crm.get_contacts(user_id)

    today = datetime.now(timezone.utc).date()
    upcoming = await crm.get_upcoming_birthdays(
        user_id, days=birthday_days, today=today, contacts=contacts
    )
    birthdays = [
        UpcomingBirthday(
            contact_id=contact.id,
            name=contact.name,
            birthday=contact.birthday,
            next_birthday=next_date,
            days_until=(next_date - today).days,
        )
        for contact, next_date in upcoming
    ]
    return DashboardResponse(
        recent_interactions=[interaction_to_response(i) for i in visible],
        page=page,
        page_size=RECENT_INTERACTIONS_PAGE_SIZE,
        total_interactions=len(interactions),
        has_more=len(interactions) > len(visible),
        contacts_count=len(contacts),
        upcoming_birthdays=birthdays,
    )

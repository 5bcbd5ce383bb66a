# Pydantic request/response schemas (API contract for /api/v1).

from app.schemas.common import ErrorDetail, MessageResponse
from app.schemas.contact import Contact, ContactCreate, ContactUpdate
from app.schemas.interaction import (
    Interaction,
    InteractionCreate,
    InteractionDetailResponse,
    InteractionUpdate,
)
from app.schemas.dashboard import DashboardResponse, UpcomingBirthday

__all__ = [
    "MessageResponse",
    "ErrorDetail",
    "Contact",
    "ContactCreate",
    "ContactUpdate",
    "Interaction",
    "InteractionCreate",
    "InteractionDetailResponse",
    "InteractionUpdate",
    "DashboardResponse",
    "UpcomingBirthday",
]

"""
Interactions endpoints.
List, get (with live contact name), create, update, delete.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.security import get_current_user_id
from app.models.interaction import Interaction as InteractionRecord
from app.models.interaction import InteractionCreate as InteractionRecordCreate
from app.models.interaction import InteractionUpdate as InteractionRecordUpdate
from app.schemas.common import MessageResponse
from app.schemas.interaction import (
    Interaction,
    InteractionCreate,
    InteractionDetailResponse,
    InteractionListResponse,
    InteractionUpdate,
    notes_preview,
)
from app.services.crm_service import CrmService, get_crm_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interactions", tags=["interactions"])


def interaction_to_response(i: InteractionRecord) -> Interaction:
    """Transform a stored interaction to our Interaction schema (adds notes_preview)."""
    return Interaction(
        id=i.id,
        title=i.title,
        notes=i.notes,
        notes_preview=notes_preview(i.notes),
        date=i.date,
        contact_id=i.contact_id,
        contact_name=i.contact_name,
        created_at=i.created_at,
        updated_at=i.updated_at,
    )


async def _detail_response(
    crm: CrmService, user_id: str, record: InteractionRecord
) -> InteractionDetailResponse:
    """Refresh the contact name from the live contact and flag dangling references."""
    resolved, contact_exists = await crm.resolve_contact(user_id, record)
    base = interaction_to_response(resolved)
    return InteractionDetailResponse(**base.model_dump(), contact_exists=contact_exists)


@router.get(
    "",
    response_model=InteractionListResponse,
    summary="List interactions",
    description="All interactions of the current user, newest first. Optional contact_id filter.",
)
async def list_interactions(
    contact_id: str | None = Query(None, description="Only interactions referencing this contact"),
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> InteractionListResponse:
    """GET /api/v1/interactions"""
    records = await crm.get_interactions(user_id, contact_id=contact_id)
    return InteractionListResponse(
        interactions=[interaction_to_response(i) for i in records],
    )


@router.get(
    "/{interaction_id}",
    response_model=InteractionDetailResponse,
    summary="Get interaction",
    description="contact_exists is false when the referenced contact has been deleted.",
)
async def get_interaction(
    interaction_id: str,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> InteractionDetailResponse:
    """GET /api/v1/interactions/{interaction_id}"""
    record = await crm.get_interaction(user_id, interaction_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interaction not found")
    return await _detail_response(crm, user_id, record)


@router.post(
    "",
    response_model=InteractionDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log interaction",
)
async def create_interaction(
    body: InteractionCreate,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> InteractionDetailResponse:
    """POST /api/v1/interactions — contact_id optional; contact_name alone links or creates the contact."""
    interaction_id = await crm.add_interaction(
        InteractionRecordCreate(user_id=user_id, **body.model_dump())
    )
    record = await crm.get_interaction(user_id, interaction_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Interaction was created but could not be read back",
        )
    return await _detail_response(crm, user_id, record)


@router.put(
    "/{interaction_id}",
    response_model=InteractionDetailResponse,
    summary="Update interaction",
)
async def update_interaction(
    interaction_id: str,
    body: InteractionUpdate,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> InteractionDetailResponse:
    """PUT /api/v1/interactions/{interaction_id} — only fields present in the body are changed."""
    fields = body.model_dump(exclude_unset=True)
    record = await crm.update_interaction(
        user_id, interaction_id, InteractionRecordUpdate(**fields)
    )
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interaction not found")
    return await _detail_response(crm, user_id, record)


@router.delete(
    "/{interaction_id}",
    response_model=MessageResponse,
    summary="Delete interaction",
    description="Requires confirm=true.",
)
async def delete_interaction(
    interaction_id: str,
    confirm: bool = Query(False, description="Must be true to delete"),
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> MessageResponse:
    """DELETE /api/v1/interactions/{interaction_id}?confirm=true"""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deletion must be confirmed with confirm=true",
        )
    deleted = await crm.delete_interaction(user_id, interaction_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interaction not found")
    logger.info("Interaction %s deleted by %s", interaction_id, user_id)
    return MessageResponse(message="Interaction deleted successfully")

"""
Contacts endpoints.
List, get, create, update, delete, and the contact's interaction history.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.endpoints.interactions import interaction_to_response
from app.core.security import get_current_user_id
from app.models.contact import Contact as ContactRecord
from app.models.contact import ContactCreate as ContactRecordCreate
from app.models.contact import ContactUpdate as ContactRecordUpdate
from app.schemas.common import MessageResponse
from app.schemas.contact import (
    Contact,
    ContactCreate,
    ContactDetailResponse,
    ContactListResponse,
    ContactUpdate,
)
from app.schemas.interaction import InteractionListResponse
from app.services.crm_service import CrmService, get_crm_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _contact_to_response(c: ContactRecord) -> ContactDetailResponse:
    """Transform a stored contact to our Contact schema (user_id is not exposed)."""
    return ContactDetailResponse(
        id=c.id,
        name=c.name,
        email=c.email,
        phone=c.phone,
        birthday=c.birthday,
        notes=c.notes,
        interactions=c.interactions,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


@router.get(
    "",
    response_model=ContactListResponse,
    summary="List contacts",
    description="All contacts of the current user, ordered by name, with interaction counts.",
)
async def list_contacts(
    search: str | None = Query(None, description="Optional case-insensitive filter on name, email or phone"),
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> ContactListResponse:
    """GET /api/v1/contacts — list, optionally filtered by search."""
    records = await crm.get_contacts(user_id)
    contacts: list[Contact] = [_contact_to_response(c) for c in records]
    if search and search.strip():
        q = search.strip().lower()
        contacts = [
            c for c in contacts
            if q in c.name.lower()
            or (c.email and q in c.email.lower())
            or (c.phone and q in c.phone.lower())
        ]
    return ContactListResponse(contacts=contacts)


@router.get(
    "/{contact_id}",
    response_model=ContactDetailResponse,
    summary="Get contact",
)
async def get_contact(
    contact_id: str,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> ContactDetailResponse:
    """GET /api/v1/contacts/{contact_id}"""
    contact = await crm.get_contact(user_id, contact_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return _contact_to_response(contact)


@router.get(
    "/{contact_id}/interactions",
    response_model=InteractionListResponse,
    summary="List a contact's interactions",
    description="Interactions referencing this contact, newest first.",
)
async def list_contact_interactions(
    contact_id: str,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> InteractionListResponse:
    """GET /api/v1/contacts/{contact_id}/interactions"""
    contact = await crm.get_contact(user_id, contact_id)
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    interactions = await crm.get_interactions(user_id, contact_id=contact_id)
    return InteractionListResponse(
        interactions=[interaction_to_response(i) for i in interactions],
    )


@router.post(
    "",
    response_model=ContactDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create contact",
)
async def create_contact(
    body: ContactCreate,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> ContactDetailResponse:
    """POST /api/v1/contacts — create and return the stored contact."""
    contact_id = await crm.add_contact(
        ContactRecordCreate(user_id=user_id, **body.model_dump())
    )
    contact = await crm.get_contact(user_id, contact_id)
    if contact is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Contact was created but could not be read back",
        )
    return _contact_to_response(contact)


@router.put(
    "/{contact_id}",
    response_model=ContactDetailResponse,
    summary="Update contact",
)
async def update_contact(
    contact_id: str,
    body: ContactUpdate,
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> ContactDetailResponse:
    """PUT /api/v1/contacts/{contact_id} — only fields present in the body are changed."""
    fields = body.model_dump(exclude_unset=True)
    contact = await crm.update_contact(user_id, contact_id, ContactRecordUpdate(**fields))
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return _contact_to_response(contact)


@router.delete(
    "/{contact_id}",
    response_model=MessageResponse,
    summary="Delete contact",
    description="Requires confirm=true. The contact's interactions are kept and will show the contact as deleted.",
)
async def delete_contact(
    contact_id: str,
    confirm: bool = Query(False, description="Must be true to delete"),
    user_id: str = Depends(get_current_user_id),
    crm: CrmService = Depends(get_crm_service),
) -> MessageResponse:
    """DELETE /api/v1/contacts/{contact_id}?confirm=true"""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deletion must be confirmed with confirm=true",
        )
    deleted = await crm.delete_contact(user_id, contact_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    logger.info("Contact %s deleted by %s; its interactions are kept", contact_id, user_id)
    return MessageResponse(message="Contact deleted successfully")

"""
CRM data access layer: contacts and interactions in Supabase.

Sole mediator between the endpoints and the contacts/interactions tables.
Owns field normalisation (trimming, explicit nulls), timestamp coercion and
the denormalised fields (contactName on interactions, interaction count on
contacts). Every call takes the owning user id explicitly and scopes its
queries by userId.

Lookups return None for a missing document; store failures raise BackendError
with the operation name; bad input raises ValidationError before any call.
"""

import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any

from supabase import Client, create_client

from app.core.config import get_settings
from app.core.errors import BackendError, DataAccessError, ValidationError, backend_error
from app.core.timestamps import coerce_optional_date, coerce_timestamp, to_iso, utc_now_iso
from app.models.contact import Contact, ContactCreate, ContactUpdate
from app.models.interaction import Interaction, InteractionCreate, InteractionUpdate

logger = logging.getLogger(__name__)

CONTACTS_TABLE = "contacts"
INTERACTIONS_TABLE = "interactions"

UPCOMING_BIRTHDAY_DAYS = 30


def _clean_text(value: Any) -> str | None:
    """Trim a text field. Empty values become None so updates clear stale data."""
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _require_text(value: Any, field: str, operation: str) -> str:
    cleaned = _clean_text(value)
    if not cleaned:
        raise ValidationError(f"{field} is required", operation=operation)
    return cleaned


def _require_user_id(user_id: Any, operation: str) -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("userId is required", operation=operation)
    return user_id.strip()


def _contact_from_row(row: dict[str, Any]) -> Contact:
    return Contact(
        id=str(row["id"]),
        user_id=row.get("userId") or "",
        name=row.get("name") or "",
        email=row.get("email"),
        phone=row.get("phone"),
        birthday=coerce_optional_date(row.get("birthday"), "contacts.birthday"),
        notes=row.get("notes"),
        interactions=int(row.get("interactions") or 0),
        created_at=coerce_timestamp(row.get("createdAt"), "contacts.createdAt"),
        updated_at=coerce_timestamp(row.get("updatedAt"), "contacts.updatedAt"),
    )


def _interaction_from_row(row: dict[str, Any]) -> Interaction:
    return Interaction(
        id=str(row["id"]),
        user_id=row.get("userId") or "",
        contact_id=row.get("contactId") or None,
        contact_name=row.get("contactName") or None,
        title=row.get("title") or "",
        notes=row.get("notes"),
        date=coerce_timestamp(row.get("date"), "interactions.date"),
        created_at=coerce_timestamp(row.get("createdAt"), "interactions.createdAt"),
        updated_at=coerce_timestamp(row.get("updatedAt"), "interactions.updatedAt"),
    )


def _next_birthday(birthday: date, today: date) -> date:
    """Next occurrence of birthday on or after today. Feb 29 falls back to Feb 28 in common years."""
    for year in (today.year, today.year + 1):
        try:
            candidate = birthday.replace(year=year)
        except ValueError:
            candidate = date(year, 2, 28)
        if candidate >= today:
            return candidate
    return candidate


class CrmService:
    def __init__(self, client: Client | None = None) -> None:
        if client is None:
            settings = get_settings()
            client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_SERVICE_KEY,
            )
        self.client: Client = client

    # -------------------------------------------------------------------------
    # Contacts (contacts table)
    # -------------------------------------------------------------------------

    async def add_contact(self, contact: ContactCreate) -> str:
        """Insert a contact and return its store-assigned id."""
        operation = "adding contact"
        user_id = _require_user_id(contact.user_id, operation)
        name = _require_text(contact.name, "name", operation)
        now = utc_now_iso()
        row: dict[str, Any] = {
            "userId": user_id,
            "name": name,
            "email": _clean_text(contact.email),
            "phone": _clean_text(contact.phone),
            "birthday": to_iso(contact.birthday) if contact.birthday else None,
            "notes": _clean_text(contact.notes),
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            response = self.client.table(CONTACTS_TABLE).insert(row).execute()
        except Exception as e:
            logger.error("Add contact error: user_id=%s: %s", user_id, str(e))
            raise backend_error(operation, e) from e
        if not response.data:
            raise BackendError("Error adding contact: no document returned", operation=operation)
        contact_id = str(response.data[0]["id"])
        logger.info("add_contact: user_id=%s contact_id=%s", user_id, contact_id)
        return contact_id

    async def get_contact(self, user_id: str, contact_id: str) -> Contact | None:
        """Return the contact, or None if it does not exist (or belongs to someone else)."""
        operation = "getting contact"
        user_id = _require_user_id(user_id, operation)
        if not _clean_text(contact_id):
            return None
        try:
            response = (
                self.client.table(CONTACTS_TABLE)
                .select("*")
                .eq("id", contact_id)
                .eq("userId", user_id)
                .limit(1)
                .execute()
            )
            if not response.data:
                return None
            contact = _contact_from_row(response.data[0])
            count = await self.count_interactions(user_id, contact.id)
            return contact.model_copy(update={"interactions": count})
        except DataAccessError:
            raise
        except Exception as e:
            logger.error("Get contact error: contact_id=%s: %s", contact_id, str(e))
            raise backend_error(operation, e) from e

    async def get_contacts(self, user_id: str) -> list[Contact]:
        """All contacts owned by user_id, ordered by name (case-insensitive)."""
        operation = "getting contacts"
        user_id = _require_user_id(user_id, operation)
        try:
            response = (
                self.client.table(CONTACTS_TABLE)
                .select("*")
                .eq("userId", user_id)
                .execute()
            )
            rows = [r for r in (response.data or []) if r.get("userId") == user_id]
            counts = await self._interaction_counts(user_id)
        except DataAccessError:
            raise
        except Exception as e:
            logger.error("Get contacts error: user_id=%s: %s", user_id, str(e))
            raise backend_error(operation, e) from e
        contacts = [
            c.model_copy(update={"interactions": counts.get(c.id, 0)})
            for c in (_contact_from_row(r) for r in rows)
        ]
        contacts.sort(key=lambda c: (c.name.casefold(), c.id))
        return contacts

    async def find_contact_by_name(self, user_id: str, name: str) -> Contact | None:
        """Case-insensitive exact match on name, or None."""
        wanted = (_clean_text(name) or "").casefold()
        if not wanted:
            return None
        for contact in await self.get_contacts(user_id):
            if contact.name.strip().casefold() == wanted:
                return contact
        return None

    async def update_contact(
        self, user_id: str, contact_id: str, data: ContactUpdate
    ) -> Contact | None:
        """Merge only the provided fields. Returns the updated contact or None if absent."""
        operation = "updating contact"
        user_id = _require_user_id(user_id, operation)
        fields = data.model_dump(exclude_unset=True)
        row: dict[str, Any] = {}
        if "name" in fields:
            row["name"] = _require_text(fields["name"], "name", operation)
        for key in ("email", "phone", "notes"):
            if key in fields:
                row[key] = _clean_text(fields[key])
        if "birthday" in fields:
            row["birthday"] = to_iso(fields["birthday"]) if fields["birthday"] else None
        row["updatedAt"] = utc_now_iso()
        try:
            response = (
                self.client.table(CONTACTS_TABLE)
                .update(row)
                .eq("id", contact_id)
                .eq("userId", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("Update contact error: contact_id=%s: %s", contact_id, str(e))
            raise backend_error(operation, e) from e
        if not response.data:
            return None
        logger.info("update_contact: contact_id=%s fields=%s", contact_id, sorted(row))
        return await self.get_contact(user_id, contact_id)

    async def delete_contact(self, user_id: str, contact_id: str) -> bool:
        """
        Delete the contact. Interactions referencing it are left in place and
        keep pointing at the deleted id. Returns True if a document was removed.
        """
        operation = "deleting contact"
        user_id = _require_user_id(user_id, operation)
        try:
            response = (
                self.client.table(CONTACTS_TABLE)
                .delete()
                .eq("id", contact_id)
                .eq("userId", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("Delete contact error: contact_id=%s: %s", contact_id, str(e))
            raise backend_error(operation, e) from e
        deleted = bool(response.data)
        logger.info("delete_contact: contact_id=%s deleted=%s", contact_id, deleted)
        return deleted

    async def get_upcoming_birthdays(
        self,
        user_id: str,
        days: int = UPCOMING_BIRTHDAY_DAYS,
        today: date | None = None,
        contacts: list[Contact] | None = None,
    ) -> list[tuple[Contact, date]]:
        """
        Contacts whose next birthday falls within `days` days, soonest first.
        Pass `contacts` when the caller already holds the user's contacts.
        """
        today = today or datetime.now(timezone.utc).date()
        if contacts is None:
            contacts = await self.get_contacts(user_id)
        upcoming: list[tuple[Contact, date]] = []
        for contact in contacts:
            if contact.birthday is None:
                continue
            next_date = _next_birthday(contact.birthday, today)
            if (next_date - today).days <= days:
                upcoming.append((contact, next_date))
        upcoming.sort(key=lambda item: (item[1], item[0].name.casefold()))
        return upcoming

    # -------------------------------------------------------------------------
    # Interaction counts (derived at read time, never written)
    # -------------------------------------------------------------------------

    async def count_interactions(self, user_id: str, contact_id: str) -> int:
        """Number of interactions referencing contact_id."""
        try:
            response = (
                self.client.table(INTERACTIONS_TABLE)
                .select("id", count="exact")
                .eq("userId", user_id)
                .eq("contactId", contact_id)
                .execute()
            )
        except Exception as e:
            logger.error("Count interactions error: contact_id=%s: %s", contact_id, str(e))
            raise backend_error("counting contact interactions", e) from e
        if response.count is not None:
            return response.count
        return len(response.data or [])

    async def _interaction_counts(self, user_id: str) -> Counter:
        """Interaction count per contactId for all of the user's interactions (one query)."""
        response = (
            self.client.table(INTERACTIONS_TABLE)
            .select("contactId")
            .eq("userId", user_id)
            .execute()
        )
        return Counter(r["contactId"] for r in (response.data or []) if r.get("contactId"))

    async def _contact_name(self, user_id: str, contact_id: str) -> str | None:
        """Current name of the contact, or None if it no longer exists."""
        response = (
            self.client.table(CONTACTS_TABLE)
            .select("name")
            .eq("id", contact_id)
            .eq("userId", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("name") or None

    # -------------------------------------------------------------------------
    # Interactions (interactions table)
    # -------------------------------------------------------------------------

    async def add_interaction(self, interaction: InteractionCreate) -> str:
        """
        Insert an interaction and return its id.

        contact_id is optional. With a contact_id and no contact_name, the name is
        copied from the contact. With only a free-text contact_name, the contact of
        that name is reused or created and linked.
        """
        operation = "adding interaction"
        user_id = _require_user_id(interaction.user_id, operation)
        title = _require_text(interaction.title, "title", operation)
        if interaction.date is None:
            raise ValidationError("date is required", operation=operation)
        contact_id = _clean_text(interaction.contact_id)
        contact_name = _clean_text(interaction.contact_name)
        try:
            if contact_id and contact_name is None:
                contact_name = await self._contact_name(user_id, contact_id)
                if contact_name is None:
                    logger.warning(
                        "add_interaction: contact %s not found for user %s; storing without name",
                        contact_id,
                        user_id,
                    )
            elif not contact_id and contact_name:
                existing = await self.find_contact_by_name(user_id, contact_name)
                if existing is not None:
                    contact_id, contact_name = existing.id, existing.name
                else:
                    contact_id = await self.add_contact(
                        ContactCreate(user_id=user_id, name=contact_name)
                    )
                    logger.info("add_interaction: created contact %s for %r", contact_id, contact_name)

            now = utc_now_iso()
            row: dict[str, Any] = {
                "userId": user_id,
                "contactId": contact_id,
                "contactName": contact_name,
                "title": title,
                "notes": _clean_text(interaction.notes),
                "date": to_iso(interaction.date),
                "createdAt": now,
                "updatedAt": now,
            }
            response = self.client.table(INTERACTIONS_TABLE).insert(row).execute()
        except DataAccessError:
            raise
        except Exception as e:
            logger.error("Add interaction error: user_id=%s: %s", user_id, str(e))
            raise backend_error(operation, e) from e
        if not response.data:
            raise BackendError("Error adding interaction: no document returned", operation=operation)
        interaction_id = str(response.data[0]["id"])
        logger.info(
            "add_interaction: user_id=%s interaction_id=%s contact_id=%s",
            user_id,
            interaction_id,
            contact_id,
        )
        return interaction_id

    async def get_interaction(self, user_id: str, interaction_id: str) -> Interaction | None:
        """Return the interaction, or None if it does not exist."""
        operation = "getting interaction"
        user_id = _require_user_id(user_id, operation)
        if not _clean_text(interaction_id):
            return None
        try:
            response = (
                self.client.table(INTERACTIONS_TABLE)
                .select("*")
                .eq("id", interaction_id)
                .eq("userId", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("Get interaction error: interaction_id=%s: %s", interaction_id, str(e))
            raise backend_error(operation, e) from e
        if not response.data:
            return None
        return _interaction_from_row(response.data[0])

    async def get_interactions(
        self, user_id: str, contact_id: str | None = None
    ) -> list[Interaction]:
        """User's interactions, newest first. Optionally only those referencing contact_id."""
        operation = "getting interactions"
        user_id = _require_user_id(user_id, operation)
        try:
            q = (
                self.client.table(INTERACTIONS_TABLE)
                .select("*")
                .eq("userId", user_id)
            )
            if contact_id:
                q = q.eq("contactId", contact_id)
            response = q.execute()
        except Exception as e:
            logger.error("Get interactions error: user_id=%s: %s", user_id, str(e))
            raise backend_error(operation, e) from e
        interactions = [
            _interaction_from_row(r)
            for r in (response.data or [])
            if r.get("userId") == user_id
        ]
        # Sorted here rather than in the query: stored dates may have mixed shapes
        interactions.sort(key=lambda i: (i.date, i.id), reverse=True)
        return interactions

    async def update_interaction(
        self, user_id: str, interaction_id: str, data: InteractionUpdate
    ) -> Interaction | None:
        """
        Merge only the provided fields. When contact_id is part of the update the
        denormalised contactName is re-read from that contact.
        """
        operation = "updating interaction"
        user_id = _require_user_id(user_id, operation)
        fields = data.model_dump(exclude_unset=True)
        row: dict[str, Any] = {}
        if "title" in fields:
            row["title"] = _require_text(fields["title"], "title", operation)
        if "notes" in fields:
            row["notes"] = _clean_text(fields["notes"])
        if "date" in fields:
            if fields["date"] is None:
                raise ValidationError("date is required", operation=operation)
            row["date"] = to_iso(fields["date"])
        if "contact_name" in fields:
            row["contactName"] = _clean_text(fields["contact_name"])
        try:
            if "contact_id" in fields:
                contact_id = _clean_text(fields["contact_id"])
                row["contactId"] = contact_id
                resolved = await self._contact_name(user_id, contact_id) if contact_id else None
                row["contactName"] = resolved or (row.get("contactName") if contact_id else None)
            row["updatedAt"] = utc_now_iso()
            response = (
                self.client.table(INTERACTIONS_TABLE)
                .update(row)
                .eq("id", interaction_id)
                .eq("userId", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("Update interaction error: interaction_id=%s: %s", interaction_id, str(e))
            raise backend_error(operation, e) from e
        if not response.data:
            return None
        logger.info("update_interaction: interaction_id=%s fields=%s", interaction_id, sorted(row))
        return _interaction_from_row(response.data[0])

    async def delete_interaction(self, user_id: str, interaction_id: str) -> bool:
        """
        Delete the interaction. It is read first to learn which contact it
        referenced; that contact's derived count drops on its next read.
        """
        operation = "deleting interaction"
        user_id = _require_user_id(user_id, operation)
        existing = await self.get_interaction(user_id, interaction_id)
        if existing is None:
            return False
        try:
            self.client.table(INTERACTIONS_TABLE).delete().eq("id", interaction_id).eq(
                "userId", user_id
            ).execute()
        except Exception as e:
            logger.error("Delete interaction error: interaction_id=%s: %s", interaction_id, str(e))
            raise backend_error(operation, e) from e
        logger.info(
            "delete_interaction: interaction_id=%s contact_id=%s",
            interaction_id,
            existing.contact_id,
        )
        return True

    async def resolve_contact(
        self, user_id: str, interaction: Interaction
    ) -> tuple[Interaction, bool]:
        """
        Refresh contact_name from the live contact and report whether it still exists.
        A dangling contact_id yields (interaction unchanged, False).
        """
        if not interaction.contact_id:
            return interaction, False
        try:
            name = await self._contact_name(user_id, interaction.contact_id)
        except Exception as e:
            logger.error("Resolve contact error: contact_id=%s: %s", interaction.contact_id, str(e))
            raise backend_error("getting contact", e) from e
        if name is None:
            return interaction, False
        return interaction.model_copy(update={"contact_name": name}), True


def get_crm_service() -> CrmService:
    """Dependency for FastAPI."""
    return CrmService()

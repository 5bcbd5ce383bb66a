# Domain models: Supabase DB rows for contacts and interactions

from app.models.contact import (
    Contact,
    ContactCreate,
    ContactInDB,
    ContactUpdate,
)
from app.models.interaction import (
    Interaction,
    InteractionCreate,
    InteractionInDB,
    InteractionUpdate,
)

__all__ = [
    "Contact",
    "ContactCreate",
    "ContactInDB",
    "ContactUpdate",
    "Interaction",
    "InteractionCreate",
    "InteractionInDB",
    "InteractionUpdate",
]

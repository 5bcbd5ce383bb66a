# Services: CRM data access (contacts, interactions) and Supabase Auth

from app.services.crm_service import (
    CrmService,
    get_crm_service,
)
from app.services.supabase_service import (
    SupabaseService,
    get_supabase_service,
)

__all__ = [
    "CrmService",
    "get_crm_service",
    "SupabaseService",
    "get_supabase_service",
]

"""
Aggregate v1 API routes.

Convention: Use "" (not "/") for the root path of a segment (e.g. @router.get(""), @router.post(""))
so the route is /api/v1/contacts not /api/v1/contacts/. This avoids 307 redirects when the
request arrives without a trailing slash (e.g. after Next.js rewrite).
"""

from fastapi import APIRouter

from app.api.v1.endpoints import contacts, dashboard, interactions

api_router = APIRouter()

api_router.include_router(contacts.router, prefix="")
api_router.include_router(interactions.router, prefix="")
api_router.include_router(dashboard.router, prefix="")

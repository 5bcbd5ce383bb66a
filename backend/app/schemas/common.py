"""
Common Pydantic schemas (messages, errors).
"""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorDetail(BaseModel):
    """Error body. cause is set for store failures (permission-denied, unavailable, ...)."""
    detail: str
    cause: str | None = None

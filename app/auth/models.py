# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for the signed-in user.
# =============================================================================

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    role comes from the token's user_metadata.role ("employee", "manager",
    ...). It only decides which view the user lands on.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    role: Optional[str] = None


class MeResponse(BaseModel):
    """Response for GET /me."""
    id: UUID
    email: Optional[str] = None
    role: Optional[str] = None
    is_employee: bool = False


class ViewResponse(BaseModel):
    """Response for GET /me/view."""
    view: str
    role: Optional[str] = None
    tabs: list[str] = []
    badges: dict[str, int] = {}

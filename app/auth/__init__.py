# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import get_current_user, verify_token
from app.auth.models import AuthUser, MeResponse, ViewResponse

__all__ = [
    "get_current_user",
    "verify_token",
    "AuthUser",
    "MeResponse",
    "ViewResponse",
]

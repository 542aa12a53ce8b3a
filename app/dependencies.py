# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
#
# The gateway, inventory cache and clock registry are created once in the
# application lifespan and stored on app.state. Each request gets an
# AppContext bundling them with the authenticated user.
#
# Usage:
#   @router.get("")
#   async def list_customers(ctx: ContextDep):
#       return CustomerService(ctx).list_customers()
# =============================================================================

from typing import Annotated

from fastapi import Depends, FastAPI, Request

from app.auth import AuthUser, get_current_user
from core.context import AppContext


def build_context(app: FastAPI, user: AuthUser | None) -> AppContext:
    """Build an AppContext from the shared resources on app.state."""
    return AppContext(
        gateway=app.state.gateway,
        user=user,
        inventory_cache=app.state.inventory_cache,
        clocks=app.state.clocks,
    )


def get_context(
    request: Request,
    user: AuthUser = Depends(get_current_user),
) -> AppContext:
    """
    Get the AppContext for the current request.

    Requires an authenticated user.
    """
    return build_context(request.app, user)


# Type alias for dependency injection
ContextDep = Annotated[AppContext, Depends(get_context)]

# =============================================================================
# app/auth/routes.py - Current User Routes
# =============================================================================
# Who is signed in, and which view they should see.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, MeResponse, ViewResponse
from app.dependencies import ContextDep
from core.services.dashboard_service import EMPLOYEE_ROLE, DashboardService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> MeResponse:
    """
    Get the current authenticated user and role.

    Raises:
        401: If not authenticated
    """
    return MeResponse(
        id=user.id,
        email=user.email,
        role=user.role,
        is_employee=user.role == EMPLOYEE_ROLE,
    )


@router.get("/me/view", response_model=ViewResponse)
def get_view(ctx: ContextDep) -> ViewResponse:
    """
    Get the view for the current user's role.

    Employees get the timesheet screen; everyone else the management tabs
    with badge counters.
    """
    return ViewResponse(**DashboardService(ctx).view())

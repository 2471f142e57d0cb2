"""
Dashboard domain — router.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.dashboard.controller import get_dashboard as get_dashboard_controller
from app.dashboard.schemas import DashboardResponse
from app.database import get_db
from app.rate_limit.constants import Action
from app.rate_limit.dependencies import rate_limited
from shared.models.user import SessionClaims

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "",
    response_model=DashboardResponse,
    summary="Counters, matches, sent admirations and blocks for the signed-in user",
)
async def get_dashboard(
    current_user: SessionClaims = Depends(rate_limited(Action.GET_DASHBOARD)),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DashboardResponse:
    return await get_dashboard_controller(session, current_user, settings)

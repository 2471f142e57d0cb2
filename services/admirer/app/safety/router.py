"""
Safety domain — router.

Only HTTP concerns live here.  Unblocking is a POST so clients can send the
handle in a body.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.rate_limit.constants import Action
from app.rate_limit.dependencies import rate_limited
from app.safety.controller import (
    block as block_controller,
    report as report_controller,
    unblock as unblock_controller,
)
from app.safety.schemas import (
    BlockRequest,
    BlockResponse,
    OkResponse,
    ReportRequest,
    ReportResponse,
)
from shared.models.user import SessionClaims

router = APIRouter(prefix="/safety", tags=["safety"])


@router.post(
    "/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a user",
)
async def report_user(
    body: ReportRequest,
    current_user: SessionClaims = Depends(rate_limited(Action.REPORT_USER)),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ReportResponse:
    return await report_controller(session, current_user, body, settings)


@router.post(
    "/blocks",
    response_model=BlockResponse,
    summary="Block a user (idempotent)",
)
async def block_user(
    body: BlockRequest,
    current_user: SessionClaims = Depends(rate_limited(Action.BLOCK_USER)),
    session: AsyncSession = Depends(get_db),
) -> BlockResponse:
    return await block_controller(session, current_user, body)


@router.post(
    "/blocks/remove",
    response_model=OkResponse,
    summary="Unblock a user, including one whose account no longer exists",
)
async def unblock_user(
    body: BlockRequest,
    current_user: SessionClaims = Depends(rate_limited(Action.UNBLOCK_USER)),
    session: AsyncSession = Depends(get_db),
) -> OkResponse:
    return await unblock_controller(session, current_user, body)

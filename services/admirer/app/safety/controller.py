"""
Safety domain — controller (request orchestration layer).
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.safety.schemas import (
    BlockRequest,
    BlockResponse,
    OkResponse,
    ReportRequest,
    ReportResponse,
)
from app.safety.service import block_user, report_user, unblock_user
from shared.models.user import SessionClaims


async def report(
    session: AsyncSession,
    current_user: SessionClaims,
    body: ReportRequest,
    settings: Settings,
) -> ReportResponse:
    created = await report_user(
        session,
        current_user.uid,
        body.target_handle,
        body.reason,
        body.details,
        retention_days=settings.report_retention_days,
    )
    return ReportResponse(report_id=created.report_id)


async def block(
    session: AsyncSession, current_user: SessionClaims, body: BlockRequest
) -> BlockResponse:
    row = await block_user(session, current_user.uid, body.target_handle)
    return BlockResponse(blocked_uid=row.blocked_uid, blocked_handle=row.blocked_handle)


async def unblock(
    session: AsyncSession, current_user: SessionClaims, body: BlockRequest
) -> OkResponse:
    await unblock_user(session, current_user.uid, body.target_handle)
    return OkResponse()

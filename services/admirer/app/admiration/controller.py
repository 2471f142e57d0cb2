"""
Admiration domain — controller (request orchestration layer).
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.admiration.schemas import AddAdmirationRequest, AddAdmirationResponse
from app.admiration.service import add_admiration as add_admiration_service
from app.config import Settings
from app.identity.service import ConsentPolicy
from shared.models.user import SessionClaims


async def add_admiration(
    session: AsyncSession,
    current_user: SessionClaims,
    body: AddAdmirationRequest,
    settings: Settings,
) -> AddAdmirationResponse:
    result = await add_admiration_service(
        session,
        current_user.uid,
        body.to_handle,
        ConsentPolicy.from_settings(settings),
    )
    return AddAdmirationResponse(matched=result.matched, to_handle=result.to_handle)

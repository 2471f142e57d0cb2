"""
Dashboard domain — controller (maps the aggregated view to the response).
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.dashboard.schemas import (
    BlockedUserItem,
    DashboardResponse,
    MatchItem,
    SentAdmirationItem,
)
from app.dashboard.service import get_dashboard as get_dashboard_service
from app.identity.service import ConsentPolicy
from shared.models.user import SessionClaims


async def get_dashboard(
    session: AsyncSession, current_user: SessionClaims, settings: Settings
) -> DashboardResponse:
    view = await get_dashboard_service(
        session,
        current_user.uid,
        ConsentPolicy.from_settings(settings),
        match_limit=settings.dashboard_match_limit,
    )
    return DashboardResponse(
        handle=view.handle,
        incoming_count=view.incoming_count,
        outgoing_count=view.outgoing_count,
        match_count=view.match_count,
        max_outgoing=view.max_outgoing,
        matches=[
            MatchItem(uid=m.other_uid, handle=m.other_handle, created_at=m.created_at)
            for m in view.matches
        ],
        sent_admirations=[
            SentAdmirationItem(
                to_uid=e.to_uid,
                to_handle=e.to_handle,
                revealed=e.revealed,
                created_at=e.created_at,
                matched_at=e.matched_at,
            )
            for e in view.sent_admirations
        ],
        blocked_users=[
            BlockedUserItem(uid=b.blocked_uid, handle=b.blocked_handle, created_at=b.created_at)
            for b in view.blocked_users
        ],
        consent_required=view.consent_required,
    )

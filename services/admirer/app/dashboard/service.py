"""
Dashboard domain — read-only aggregation for the signed-in user.

Matches and sent admirations involving anyone blocked in either direction
are hidden, not deleted.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.admiration.constants import MAX_OUTGOING
from app.admiration.models import AdmirationEdge, Match
from app.identity.models import Stats, User
from app.identity.service import ConsentPolicy, consent_satisfied
from app.safety.models import Block
from app.safety.service import blocked_uids_either_direction, list_own_blocks


@dataclass
class DashboardView:
    handle: str | None
    incoming_count: int
    outgoing_count: int
    match_count: int
    max_outgoing: int
    consent_required: bool
    matches: list[Match] = field(default_factory=list)
    sent_admirations: list[AdmirationEdge] = field(default_factory=list)
    blocked_users: list[Block] = field(default_factory=list)


async def get_dashboard(
    session: AsyncSession,
    uid: str,
    policy: ConsentPolicy,
    *,
    match_limit: int,
) -> DashboardView:
    """
    The newest ``match_limit`` matches are read first and blocked counterparts
    dropped afterwards, so fewer than ``match_limit`` may come back even when
    older visible matches exist.
    """
    user = await session.get(User, uid)
    stats = await session.get(Stats, uid)

    recent_matches = await session.execute(
        sa.select(Match)
        .where(Match.owner_uid == uid)
        .order_by(Match.created_at.desc())
        .limit(match_limit)
    )
    sent = await session.execute(
        sa.select(AdmirationEdge)
        .where(AdmirationEdge.from_uid == uid)
        .execution_options(populate_existing=True)
    )
    hidden = await blocked_uids_either_direction(session, uid)
    own_blocks = await list_own_blocks(session, uid)

    matches = [m for m in recent_matches.scalars().all() if m.other_uid not in hidden]
    sent_admirations = sorted(
        (e for e in sent.scalars().all() if e.to_uid not in hidden),
        key=lambda e: e.created_at,
        reverse=True,
    )[:MAX_OUTGOING]

    return DashboardView(
        handle=user.handle if user is not None else None,
        incoming_count=stats.incoming_count if stats is not None else 0,
        outgoing_count=stats.outgoing_count if stats is not None else 0,
        match_count=stats.match_count if stats is not None else 0,
        max_outgoing=MAX_OUTGOING,
        consent_required=policy.enforced and not consent_satisfied(user, policy),
        matches=matches,
        sent_admirations=sent_admirations,
        blocked_users=own_blocks,
    )

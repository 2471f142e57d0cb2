"""
Admiration domain — the admiration graph engine (zero FastAPI imports).

Rules:
  add:       preconditions are checked in a fixed order before any write;
             the edge, both counters and, on reciprocity, the reveal of both
             edges plus the mirrored match records commit together
  match:     derived only from the reverse edge as read inside the same
             transaction; never from a counter or a cached flag
  ordering:  both users' stats rows are locked in uid order before either
             edge is read, so A→B and B→A serialize and exactly one of them
             takes the match path; the target handle is re-read under the
             lock, so an account deleted in between is unavailable
  recompute: stats are rebuilt from edges and matches, never decremented
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.admiration.constants import MAX_OUTGOING
from app.admiration.models import AdmirationEdge, Match
from app.exceptions import (
    AlreadyAdmired,
    CannotAdmireSelf,
    ConsentRequired,
    InteractionBlocked,
    OutgoingLimitReached,
    ProfileNotSynced,
    TargetUnavailable,
)
from app.identity.models import Stats, User
from app.identity.service import (
    ConsentPolicy,
    confirm_handle_owner,
    consent_satisfied,
    lock_stats,
    lookup_handle_owner,
    normalize_handle,
    validate_handle,
)
from app.safety.service import block_exists_between
from shared.database.postgres import insert_ignore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class AdmirationResult:
    matched: bool
    to_handle: str


async def _get_edge(
    session: AsyncSession, from_uid: str, to_uid: str
) -> AdmirationEdge | None:
    return await session.get(
        AdmirationEdge, (from_uid, to_uid), with_for_update=True, populate_existing=True
    )


async def _ensure_match(
    session: AsyncSession, owner_uid: str, other_uid: str, other_handle: str, now: datetime
) -> bool:
    """Create the owner's match record; False when it already existed."""
    existing = await session.get(Match, (owner_uid, other_uid))
    if existing is not None:
        return False
    session.add(
        Match(owner_uid=owner_uid, other_uid=other_uid, other_handle=other_handle, created_at=now)
    )
    return True


async def add_admiration(
    session: AsyncSession,
    from_uid: str,
    to_handle: str,
    policy: ConsentPolicy,
) -> AdmirationResult:
    """Send an admiration from ``from_uid`` to the owner of ``to_handle``."""
    sender = await session.get(User, from_uid)
    if sender is None or not sender.handle:
        raise ProfileNotSynced()
    if policy.enforced and not consent_satisfied(sender, policy):
        raise ConsentRequired()

    target_handle = normalize_handle(to_handle)
    validate_handle(target_handle)
    if target_handle == sender.handle:
        raise CannotAdmireSelf()

    to_uid = await lookup_handle_owner(session, target_handle)
    if to_uid is None:
        raise TargetUnavailable()
    if to_uid == from_uid:
        raise CannotAdmireSelf()

    if await block_exists_between(session, from_uid, to_uid):
        raise InteractionBlocked()

    stats = await lock_stats(session, from_uid, to_uid)
    # The target may have been deleted between the lookup and the lock.
    await confirm_handle_owner(session, target_handle, to_uid)

    if await _get_edge(session, from_uid, to_uid) is not None:
        raise AlreadyAdmired()
    if stats[from_uid].outgoing_count >= MAX_OUTGOING:
        raise OutgoingLimitReached(MAX_OUTGOING)

    now = _now()
    edge = AdmirationEdge(
        from_uid=from_uid,
        to_uid=to_uid,
        from_handle=sender.handle,
        to_handle=target_handle,
        created_at=now,
        revealed=False,
    )
    session.add(edge)
    stats[from_uid].outgoing_count += 1
    stats[to_uid].incoming_count += 1

    reverse = await _get_edge(session, to_uid, from_uid)
    matched = reverse is not None
    if matched:
        edge.revealed = True
        edge.matched_at = now
        if not reverse.revealed:
            reverse.revealed = True
            reverse.matched_at = now
        if await _ensure_match(session, from_uid, to_uid, target_handle, now):
            stats[from_uid].match_count += 1
        if await _ensure_match(session, to_uid, from_uid, sender.handle, now):
            stats[to_uid].match_count += 1

    try:
        await session.flush()
    except IntegrityError as exc:
        # A concurrent request created the same edge first.
        raise AlreadyAdmired() from exc

    if matched:
        logger.info("Match created: %s <-> %s", from_uid, to_uid)
    return AdmirationResult(matched=matched, to_handle=target_handle)


async def recompute_stats(session: AsyncSession, uid: str) -> Stats:
    """Rebuild ``uid``'s counters from the edges and matches that exist now."""
    outgoing = await session.scalar(
        sa.select(sa.func.count()).select_from(AdmirationEdge).where(AdmirationEdge.from_uid == uid)
    )
    incoming = await session.scalar(
        sa.select(sa.func.count()).select_from(AdmirationEdge).where(AdmirationEdge.to_uid == uid)
    )
    matches = await session.scalar(
        sa.select(sa.func.count()).select_from(Match).where(Match.owner_uid == uid)
    )

    await insert_ignore(
        session,
        Stats,
        {"uid": uid, "incoming_count": 0, "outgoing_count": 0, "match_count": 0},
    )
    stats = await session.get(Stats, uid, with_for_update=True, populate_existing=True)
    stats.outgoing_count = outgoing or 0
    stats.incoming_count = incoming or 0
    stats.match_count = matches or 0
    await session.flush()
    return stats


async def list_known_uids(session: AsyncSession) -> list[str]:
    """Every uid with a user record or stats row; used by the stats repair job."""
    result = await session.execute(
        sa.union(sa.select(User.uid), sa.select(Stats.uid))
    )
    return sorted(row[0] for row in result)

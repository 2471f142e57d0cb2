"""
Account domain — account deletion (zero FastAPI imports).

Steps:
  1. detach   lock the uid's stats row and delete the user record, handle
              index and external-id index in one committed transaction
  2. gather   every record owned by or pointing at the uid (reads only)
  3. delete   the deduplicated set in committed batches
  4. anonymize reports filed against the uid
  5. recompute stats of every counterpart from the surviving edges/matches
  6. delete the auth identity; "already gone" counts as done

Admirations, reports and blocks lock the target's stats row and re-read its
handle before writing, so after step 1 nothing new can point at the uid and
anything committed before it is found by step 2.  Failures leave partial
progress and every step is safe to repeat, so the caller simply retries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.account.constants import DELETE_BATCH_SIZE, DELETE_CONFIRMATION
from app.admiration.models import AdmirationEdge, Match
from app.admiration.service import recompute_stats
from app.auth.provider import IdentityNotFound, IdentityProviderAdmin, IdentityProviderError
from app.exceptions import IdentityProviderUnavailable, InvalidDeleteConfirmation
from app.identity.models import ExternalIdIndex, HandleIndex, Stats, User
from app.identity.service import lock_stats
from app.rate_limit.models import RateLimitWindow
from app.safety.constants import DELETED_HANDLE_PLACEHOLDER
from app.safety.models import Block, Report
from shared.database.postgres import chunked, delete_by_keys, primary_key_of

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountFootprint:
    """Everything deleting ``uid`` has to touch."""

    uid: str
    user: User | None = None
    # (model, primary key) in deletion order, without duplicates
    deletions: list[tuple[Any, tuple[Any, ...]]] = field(default_factory=list)
    impacted_uids: set[str] = field(default_factory=set)
    _seen: set[tuple[Any, tuple[Any, ...]]] = field(default_factory=set, repr=False)

    def add(self, model: Any, key: tuple[Any, ...]) -> None:
        entry = (model, key)
        if entry not in self._seen:
            self._seen.add(entry)
            self.deletions.append(entry)


async def _all(session: AsyncSession, stmt: Any) -> list[Any]:
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def detach_identity(session: AsyncSession, uid: str) -> None:
    """Make ``uid`` unreachable by handle; commits."""
    await lock_stats(session, uid)
    user = await session.get(User, uid, populate_existing=True)
    handle = user.handle if user is not None else None
    await session.execute(sa.delete(HandleIndex).where(HandleIndex.uid == uid))
    await session.execute(sa.delete(ExternalIdIndex).where(ExternalIdIndex.uid == uid))
    await session.execute(sa.delete(User).where(User.uid == uid))
    await session.commit()
    logger.info("Detached handle %s from uid=%s", handle, uid)


async def gather_footprint(session: AsyncSession, uid: str) -> AccountFootprint:
    footprint = AccountFootprint(uid=uid)
    footprint.user = await session.get(User, uid, populate_existing=True)

    own_matches = await _all(session, sa.select(Match).where(Match.owner_uid == uid))
    mirrored_matches = await _all(session, sa.select(Match).where(Match.other_uid == uid))
    edges = await _all(
        session,
        sa.select(AdmirationEdge).where(
            sa.or_(AdmirationEdge.from_uid == uid, AdmirationEdge.to_uid == uid)
        ),
    )
    blocks = await _all(
        session,
        sa.select(Block).where(sa.or_(Block.blocker_uid == uid, Block.blocked_uid == uid)),
    )
    windows = await _all(session, sa.select(RateLimitWindow).where(RateLimitWindow.uid == uid))
    own_reports = await _all(session, sa.select(Report).where(Report.reporter_uid == uid))
    handles = await _all(session, sa.select(HandleIndex).where(HandleIndex.uid == uid))
    external_ids = await _all(session, sa.select(ExternalIdIndex).where(ExternalIdIndex.uid == uid))

    for match in own_matches:
        footprint.impacted_uids.add(match.other_uid)
        # Counterpart's mirrored record
        footprint.add(Match, (match.other_uid, uid))
    for match in mirrored_matches:
        footprint.impacted_uids.add(match.owner_uid)
    for edge in edges:
        footprint.impacted_uids.add(edge.to_uid if edge.from_uid == uid else edge.from_uid)
    footprint.impacted_uids.discard(uid)

    if footprint.user is not None:
        footprint.add(User, (uid,))
    footprint.add(Stats, (uid,))
    for rows in (own_matches, mirrored_matches, edges, blocks, windows, own_reports,
                 handles, external_ids):
        for row in rows:
            footprint.add(type(row), primary_key_of(row))

    # Index entries still pointing at the uid are covered above; this catches
    # a handle recorded on the user whose index entry was never written.
    if footprint.user is not None and footprint.user.handle:
        entry = await session.get(HandleIndex, footprint.user.handle, populate_existing=True)
        if entry is not None and entry.uid == uid:
            footprint.add(HandleIndex, (entry.handle,))
    return footprint


async def _delete_in_batches(session: AsyncSession, footprint: AccountFootprint) -> int:
    deleted = 0
    for batch in chunked(footprint.deletions, DELETE_BATCH_SIZE):
        by_model: dict[Any, list[tuple[Any, ...]]] = {}
        for model, key in batch:
            by_model.setdefault(model, []).append(key)
        for model, keys in by_model.items():
            deleted += await delete_by_keys(session, model, keys)
        await session.commit()
    return deleted


async def anonymize_reports_against(session: AsyncSession, uid: str) -> int:
    now = _now()
    result = await session.execute(
        sa.update(Report)
        .where(Report.reported_uid == uid)
        .values(
            reported_uid=None,
            reported_handle=DELETED_HANDLE_PLACEHOLDER,
            anonymized_at=now,
            updated_at=now,
        )
    )
    await session.commit()
    return result.rowcount or 0


async def delete_account(
    session: AsyncSession,
    uid: str,
    confirmation: str | None,
    provider_admin: IdentityProviderAdmin,
) -> None:
    """Remove every trace of ``uid`` except anonymized reports filed against it."""
    if confirmation != DELETE_CONFIRMATION:
        raise InvalidDeleteConfirmation()

    await detach_identity(session, uid)
    footprint = await gather_footprint(session, uid)
    # Release the read transaction before the batched writes start.
    await session.commit()

    deleted = await _delete_in_batches(session, footprint)
    anonymized = await anonymize_reports_against(session, uid)

    for other_uid in sorted(footprint.impacted_uids):
        await recompute_stats(session, other_uid)
    await session.commit()

    logger.info(
        "Account data removed: uid=%s records=%d anonymized_reports=%d impacted=%d",
        uid, deleted, anonymized, len(footprint.impacted_uids),
    )

    try:
        await provider_admin.delete_user(uid)
    except IdentityNotFound:
        logger.warning("Auth identity for uid=%s was already gone", uid)
    except IdentityProviderError as exc:
        logger.error("Auth identity deletion failed for uid=%s: %s", uid, exc)
        raise IdentityProviderUnavailable() from exc

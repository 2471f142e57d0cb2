"""
Safety domain — reports and blocks (zero FastAPI imports).

Rules:
  report:   reason from a fixed set; details trimmed and truncated; always
            stored as "open" with a purge deadline; never self
  block:    keyed by (blocker, blocked); repeating refreshes handles and
            updated_at but keeps created_at
  unblock:  keyed delete when the handle resolves; otherwise (or when the
            keyed delete found nothing) the blocker's rows are matched on the
            stored handle, which is how blocks on deleted accounts are removed
  effect:   a block in either direction stops new admirations and hides the
            pair from each other's dashboard; existing edges stay
  targets:  the target's stats row is locked and its handle re-read before a
            report or block is written, which orders it against deletion
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    CannotBlockSelf,
    CannotReportSelf,
    InvalidReportReason,
    NotBlocked,
    ProfileNotSynced,
    TargetUnavailable,
)
from app.identity.models import User
from app.identity.service import (
    confirm_handle_owner,
    lock_stats,
    lookup_handle_owner,
    normalize_handle,
    validate_handle,
)
from app.safety.constants import (
    DETAILS_MAX_LENGTH,
    PURGE_BATCH_SIZE,
    ReportReason,
    ReportStatus,
)
from app.safety.models import Block, Report
from shared.database.postgres import delete_by_keys

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_reason(value: object) -> ReportReason:
    try:
        return ReportReason(str(value or "").strip().lower())
    except ValueError as exc:
        raise InvalidReportReason() from exc


def clean_details(value: str | None) -> str:
    return (value or "").strip()[:DETAILS_MAX_LENGTH]


async def _synced_user(session: AsyncSession, uid: str) -> User:
    user = await session.get(User, uid)
    if user is None or not user.handle:
        raise ProfileNotSynced()
    return user


# ── Block lookups ─────────────────────────────────────────────────────────────

async def block_exists_between(session: AsyncSession, uid_a: str, uid_b: str) -> bool:
    """True if either user has blocked the other."""
    result = await session.execute(
        sa.select(Block.blocker_uid)
        .where(
            sa.or_(
                sa.and_(Block.blocker_uid == uid_a, Block.blocked_uid == uid_b),
                sa.and_(Block.blocker_uid == uid_b, Block.blocked_uid == uid_a),
            )
        )
        .limit(1)
    )
    return result.first() is not None


async def blocked_uids_either_direction(session: AsyncSession, uid: str) -> set[str]:
    """Every uid that ``uid`` blocked or that blocked ``uid``."""
    blocked = await session.execute(sa.select(Block.blocked_uid).where(Block.blocker_uid == uid))
    blockers = await session.execute(sa.select(Block.blocker_uid).where(Block.blocked_uid == uid))
    return set(blocked.scalars().all()) | set(blockers.scalars().all())


async def list_own_blocks(session: AsyncSession, uid: str) -> list[Block]:
    result = await session.execute(
        sa.select(Block).where(Block.blocker_uid == uid).order_by(Block.created_at.desc())
    )
    return list(result.scalars().all())


# ── Report ────────────────────────────────────────────────────────────────────

async def report_user(
    session: AsyncSession,
    reporter_uid: str,
    target_handle: str,
    reason: object,
    details: str | None,
    *,
    retention_days: int,
) -> Report:
    """File an abuse report; nothing reviews it automatically."""
    parsed_reason = parse_reason(reason)
    handle = normalize_handle(target_handle)
    validate_handle(handle)

    reporter = await _synced_user(session, reporter_uid)
    if handle == reporter.handle:
        raise CannotReportSelf()
    reported_uid = await lookup_handle_owner(session, handle)
    if reported_uid is None:
        raise TargetUnavailable()
    if reported_uid == reporter_uid:
        raise CannotReportSelf()
    await lock_stats(session, reported_uid)
    await confirm_handle_owner(session, handle, reported_uid)

    now = _now()
    report = Report(
        reporter_uid=reporter_uid,
        reporter_handle=reporter.handle,
        reported_uid=reported_uid,
        reported_handle=handle,
        reason=parsed_reason,
        details=clean_details(details),
        status=ReportStatus.OPEN,
        created_at=now,
        updated_at=now,
        purge_at=now + timedelta(days=retention_days),
    )
    session.add(report)
    await session.flush()
    logger.info(
        "Report %s filed by uid=%s against uid=%s (%s)",
        report.report_id, reporter_uid, reported_uid, parsed_reason.value,
    )
    return report


# ── Block / unblock ───────────────────────────────────────────────────────────

async def block_user(session: AsyncSession, blocker_uid: str, target_handle: str) -> Block:
    handle = normalize_handle(target_handle)
    validate_handle(handle)

    blocker = await _synced_user(session, blocker_uid)
    if handle == blocker.handle:
        raise CannotBlockSelf()
    blocked_uid = await lookup_handle_owner(session, handle)
    if blocked_uid is None:
        raise TargetUnavailable()
    if blocked_uid == blocker_uid:
        raise CannotBlockSelf()
    await lock_stats(session, blocked_uid)
    await confirm_handle_owner(session, handle, blocked_uid)

    now = _now()
    block = await session.get(Block, (blocker_uid, blocked_uid), with_for_update=True)
    if block is None:
        block = Block(
            blocker_uid=blocker_uid,
            blocked_uid=blocked_uid,
            blocker_handle=blocker.handle,
            blocked_handle=handle,
            created_at=now,
            updated_at=now,
        )
        session.add(block)
    else:
        block.blocker_handle = blocker.handle
        block.blocked_handle = handle
        block.updated_at = now
    await session.flush()
    logger.info("uid=%s blocked uid=%s", blocker_uid, blocked_uid)
    return block


async def unblock_user(session: AsyncSession, blocker_uid: str, target_handle: str) -> int:
    """Remove the caller's block on ``target_handle``; returns the rows removed.

    Unblocking a live account that was never blocked succeeds and removes
    nothing.  A handle that no longer resolves must match a stored block.
    """
    handle = normalize_handle(target_handle)
    validate_handle(handle)

    blocked_uid = await lookup_handle_owner(session, handle)
    removed = 0
    if blocked_uid is not None:
        removed = await delete_by_keys(session, Block, [(blocker_uid, blocked_uid)])

    if removed == 0:
        result = await session.execute(
            sa.delete(Block).where(
                Block.blocker_uid == blocker_uid,
                Block.blocked_handle == handle,
            )
        )
        removed = result.rowcount or 0

    if removed == 0 and blocked_uid is None:
        raise NotBlocked()

    if removed:
        logger.info("uid=%s removed %d block(s) on @%s", blocker_uid, removed, handle)
    return removed


# ── Retention ─────────────────────────────────────────────────────────────────

async def purge_expired_reports(
    session: AsyncSession,
    now: datetime | None = None,
    *,
    batch_size: int = PURGE_BATCH_SIZE,
) -> int:
    """Delete reports whose purge_at has passed, committing one batch at a time."""
    cutoff = now or _now()
    purged = 0
    while True:
        result = await session.execute(
            sa.select(Report.report_id)
            .where(Report.purge_at <= cutoff)
            .order_by(Report.purge_at)
            .limit(batch_size)
        )
        ids = list(result.scalars().all())
        if not ids:
            break
        await session.execute(sa.delete(Report).where(Report.report_id.in_(ids)))
        await session.commit()
        purged += len(ids)

    if purged:
        logger.info("Purged %d expired report(s) older than %s", purged, cutoff.isoformat())
    return purged

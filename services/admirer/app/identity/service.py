"""
Identity domain — pure business logic (zero FastAPI imports).

Rules:
  resolve:  a handle asserted by the session wins and a client-supplied handle
            must equal it; without one, only the handle previously recorded
            for the same provider account and the same uid is trusted;
            nothing found → the caller must sign in again
  upsert:   user record, handle index and external-id index change in one
            transaction; a stale handle entry is removed only while it still
            points at this uid
  consent:  satisfied only for the current policy versions plus age confirmation
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import (
    ExternalAccountLinked,
    HandleMismatch,
    HandleTaken,
    HandleUnresolvable,
    InvalidHandle,
    TargetUnavailable,
)
from app.identity.constants import HANDLE_PATTERN
from app.identity.models import ExternalIdIndex, HandleIndex, Stats, User
from shared.database.postgres import insert_ignore
from shared.models.user import SessionClaims

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Handle grammar ────────────────────────────────────────────────────────────

def normalize_handle(value: object) -> str:
    """Trim, lowercase and drop leading '@' characters."""
    if value is None:
        return ""
    return str(value).strip().lower().lstrip("@")


def validate_handle(handle: str) -> None:
    if not HANDLE_PATTERN.match(handle):
        raise InvalidHandle()


# ── Lookups ───────────────────────────────────────────────────────────────────

async def get_user(session: AsyncSession, uid: str) -> User | None:
    return await session.get(User, uid)


async def lookup_handle_owner(session: AsyncSession, handle: str) -> str | None:
    """Return the uid that currently owns ``handle``, if any."""
    entry = await session.get(HandleIndex, handle)
    return entry.uid if entry is not None else None


async def lock_stats(session: AsyncSession, *uids: str) -> dict[str, Stats]:
    """Zero-init (if missing) and row-lock the stats of ``uids`` in sorted order.

    Every write that points at another user takes this lock on the target
    first; account deletion takes it before detaching the handle.
    """
    locked: dict[str, Stats] = {}
    for uid in sorted(set(uids)):
        await insert_ignore(
            session,
            Stats,
            {"uid": uid, "incoming_count": 0, "outgoing_count": 0, "match_count": 0},
        )
        locked[uid] = await session.get(
            Stats, uid, with_for_update=True, populate_existing=True
        )
    return locked


async def confirm_handle_owner(session: AsyncSession, handle: str, uid: str) -> None:
    """Re-read the handle entry under the caller's lock; gone or moved means unavailable."""
    entry = await session.get(HandleIndex, handle, populate_existing=True)
    if entry is None or entry.uid != uid:
        raise TargetUnavailable()


async def _recorded_handle(
    session: AsyncSession, uid: str, external_id: str | None
) -> str | None:
    """Handle previously stored for this provider account *and* this uid."""
    if not external_id:
        return None
    entry = await session.get(ExternalIdIndex, external_id)
    if entry is not None and entry.uid == uid and entry.handle:
        return entry.handle
    user = await session.get(User, uid)
    if user is not None and user.external_id == external_id and user.handle:
        return user.handle
    return None


# ── Resolution ────────────────────────────────────────────────────────────────

async def resolve_handle(
    session: AsyncSession,
    claims: SessionClaims,
    requested: str | None,
    *,
    provider: str,
) -> str:
    """
    Produce the one canonical handle for this session, or raise.

    Read-only: the caller persists the result via upsert_identity().
    """
    requested_handle = normalize_handle(requested)
    asserted = normalize_handle(claims.screen_name)

    if asserted:
        validate_handle(asserted)
        if requested_handle and requested_handle != asserted:
            raise HandleMismatch()
        return asserted

    recorded = await _recorded_handle(session, claims.uid, claims.external_id(provider))
    if recorded is None:
        raise HandleUnresolvable()
    if requested_handle and requested_handle != recorded:
        raise HandleMismatch()
    validate_handle(recorded)
    return recorded


# ── Upsert ────────────────────────────────────────────────────────────────────

async def upsert_identity(
    session: AsyncSession,
    uid: str,
    handle: str,
    external_id: str | None = None,
    *,
    provider: str | None = None,
) -> User:
    """
    Make ``uid`` the owner of ``handle`` (and ``external_id`` when given).

    Guard clauses run on the locked read set first; the writes follow.
    Repeating the call with the same arguments only refreshes timestamps.
    """
    user = await session.get(User, uid, with_for_update=True)
    handle_entry = await session.get(HandleIndex, handle, with_for_update=True)
    external_entry = (
        await session.get(ExternalIdIndex, external_id, with_for_update=True)
        if external_id
        else None
    )

    if handle_entry is not None and handle_entry.uid != uid:
        raise HandleTaken()
    if external_entry is not None and external_entry.uid != uid:
        raise ExternalAccountLinked()

    now = _now()
    previous_handle = user.handle if user is not None else None

    if user is None:
        user = User(uid=uid, created_at=now)
        session.add(user)
    user.handle = handle
    if external_id:
        user.external_id = external_id
    if provider:
        user.auth_provider = provider
    user.updated_at = now

    await insert_ignore(
        session,
        Stats,
        {"uid": uid, "incoming_count": 0, "outgoing_count": 0, "match_count": 0},
    )

    if handle_entry is None:
        session.add(HandleIndex(handle=handle, uid=uid, updated_at=now))
    else:
        handle_entry.updated_at = now

    if external_id:
        if external_entry is None:
            session.add(
                ExternalIdIndex(external_id=external_id, uid=uid, handle=handle, updated_at=now)
            )
        else:
            external_entry.handle = handle
            external_entry.updated_at = now

    if previous_handle and previous_handle != handle:
        # An entry reassigned to someone else in the meantime is left alone.
        await session.execute(
            sa.delete(HandleIndex).where(
                HandleIndex.handle == previous_handle,
                HandleIndex.uid == uid,
            )
        )

    try:
        await session.flush()
    except IntegrityError as exc:
        # Another transaction claimed the handle between our read and write.
        raise HandleTaken() from exc

    if previous_handle != handle:
        logger.info("Handle %s linked to uid=%s (previous=%s)", handle, uid, previous_handle)
    return user


# ── Consent ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ConsentPolicy:
    privacy_version: str
    terms_version: str
    enforced: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> ConsentPolicy:
        return cls(
            privacy_version=settings.privacy_policy_version,
            terms_version=settings.terms_version,
            enforced=settings.consent_required,
        )


def consent_satisfied(user: User | None, policy: ConsentPolicy) -> bool:
    if user is None:
        return False
    return (
        user.privacy_version == policy.privacy_version
        and user.terms_version == policy.terms_version
        and bool(user.age_confirmed)
    )


async def accept_policies(
    session: AsyncSession,
    uid: str,
    policy: ConsentPolicy,
    *,
    provider: str | None = None,
) -> User:
    """Record acceptance of the current policy versions; creates the user record if needed."""
    user = await session.get(User, uid, with_for_update=True)
    now = _now()
    if user is None:
        user = User(uid=uid, auth_provider=provider, created_at=now)
        session.add(user)
    user.privacy_version = policy.privacy_version
    user.terms_version = policy.terms_version
    user.age_confirmed = True
    user.consent_accepted_at = now
    user.updated_at = now
    await session.flush()
    return user

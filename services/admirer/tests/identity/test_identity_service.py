import pytest
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ExternalAccountLinked,
    HandleMismatch,
    HandleTaken,
    HandleUnresolvable,
    InvalidHandle,
)
from app.identity.models import ExternalIdIndex, HandleIndex, Stats, User
from app.identity.service import (
    ConsentPolicy,
    accept_policies,
    consent_satisfied,
    normalize_handle,
    resolve_handle,
    upsert_identity,
    validate_handle,
)
from shared.models.user import SessionClaims

PROVIDER = "twitter.com"


def _claims(uid: str, screen_name: str | None = None, external_id: str | None = "x-1") -> SessionClaims:
    identities = {PROVIDER: [external_id]} if external_id else {}
    return SessionClaims(
        uid=uid, sign_in_provider=PROVIDER, identities=identities, screen_name=screen_name
    )


async def _handle_rows(session: AsyncSession, uid: str) -> list[str]:
    result = await session.execute(sa.select(HandleIndex.handle).where(HandleIndex.uid == uid))
    return sorted(result.scalars().all())


# ── Grammar ───────────────────────────────────────────────────────────────────

def test_normalize_handle() -> None:
    assert normalize_handle("  @@Alice_01 ") == "alice_01"
    assert normalize_handle(None) == ""


@pytest.mark.parametrize("handle", ["", "a" * 16, "bad-handle", "dot.ted", "spa ce"])
def test_validate_handle_rejects(handle: str) -> None:
    with pytest.raises(InvalidHandle):
        validate_handle(handle)


def test_validate_handle_accepts_max_length() -> None:
    validate_handle("a" * 15)


# ── Resolution ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_resolve_prefers_session_handle(db_session: AsyncSession) -> None:
    handle = await resolve_handle(db_session, _claims("u1", "@Alice"), None, provider=PROVIDER)
    assert handle == "alice"


@pytest.mark.asyncio
async def test_resolve_accepts_matching_client_handle(db_session: AsyncSession) -> None:
    handle = await resolve_handle(db_session, _claims("u1", "alice"), "@ALICE", provider=PROVIDER)
    assert handle == "alice"


@pytest.mark.asyncio
async def test_resolve_rejects_spoofed_client_handle(db_session: AsyncSession) -> None:
    with pytest.raises(HandleMismatch):
        await resolve_handle(db_session, _claims("u1", "alice"), "bob", provider=PROVIDER)


@pytest.mark.asyncio
async def test_resolve_rejects_invalid_session_handle(db_session: AsyncSession) -> None:
    with pytest.raises(InvalidHandle):
        await resolve_handle(db_session, _claims("u1", "not-valid"), None, provider=PROVIDER)


@pytest.mark.asyncio
async def test_resolve_falls_back_to_recorded_handle(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    handle = await resolve_handle(db_session, _claims("u1"), None, provider=PROVIDER)
    assert handle == "alice"


@pytest.mark.asyncio
async def test_resolve_fallback_uses_user_record(db_session: AsyncSession) -> None:
    # Profile written before the external-id index existed
    db_session.add(User(uid="u1", handle="alice", external_id="x-1"))
    await db_session.flush()
    handle = await resolve_handle(db_session, _claims("u1"), None, provider=PROVIDER)
    assert handle == "alice"


@pytest.mark.asyncio
async def test_resolve_fallback_ignores_other_uid(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    with pytest.raises(HandleUnresolvable):
        await resolve_handle(db_session, _claims("u2"), None, provider=PROVIDER)


@pytest.mark.asyncio
async def test_resolve_fallback_rejects_different_client_handle(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    with pytest.raises(HandleMismatch):
        await resolve_handle(db_session, _claims("u1"), "mallory", provider=PROVIDER)


@pytest.mark.asyncio
async def test_resolve_without_any_source_fails(db_session: AsyncSession) -> None:
    with pytest.raises(HandleUnresolvable):
        await resolve_handle(db_session, _claims("u1", external_id=None), "alice", provider=PROVIDER)


# ── Upsert ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_upsert_is_idempotent(db_session: AsyncSession) -> None:
    first = await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    created_at = first.created_at
    await db_session.commit()

    again = await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    await db_session.commit()

    assert again.created_at == created_at
    assert again.handle == "alice"
    assert await _handle_rows(db_session, "u1") == ["alice"]
    count = await db_session.scalar(sa.select(sa.func.count()).select_from(HandleIndex))
    assert count == 1


@pytest.mark.asyncio
async def test_upsert_keeps_existing_counters(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", provider=PROVIDER)
    stats = await db_session.get(Stats, "u1")
    stats.outgoing_count = 3
    await db_session.commit()

    await upsert_identity(db_session, "u1", "alice", provider=PROVIDER)
    await db_session.commit()
    stats = await db_session.get(Stats, "u1", populate_existing=True)
    assert stats.outgoing_count == 3


@pytest.mark.asyncio
async def test_upsert_rejects_taken_handle(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", provider=PROVIDER)
    with pytest.raises(HandleTaken):
        await upsert_identity(db_session, "u2", "alice", provider=PROVIDER)


@pytest.mark.asyncio
async def test_upsert_rejects_external_id_linked_elsewhere(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    with pytest.raises(ExternalAccountLinked):
        await upsert_identity(db_session, "u2", "bob", "x-1", provider=PROVIDER)


@pytest.mark.asyncio
async def test_handle_change_removes_stale_entry(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", "x-1", provider=PROVIDER)
    await db_session.commit()
    user = await upsert_identity(db_session, "u1", "alice2", "x-1", provider=PROVIDER)
    await db_session.commit()

    assert user.handle == "alice2"
    assert await _handle_rows(db_session, "u1") == ["alice2"]
    entry = await db_session.get(ExternalIdIndex, "x-1", populate_existing=True)
    assert entry.handle == "alice2"


@pytest.mark.asyncio
async def test_handle_change_leaves_reassigned_entry(db_session: AsyncSession) -> None:
    await upsert_identity(db_session, "u1", "alice", provider=PROVIDER)
    await db_session.commit()
    # The old handle's index entry now belongs to someone else.
    entry = await db_session.get(HandleIndex, "alice")
    entry.uid = "u9"
    await db_session.commit()

    await upsert_identity(db_session, "u1", "alice2", provider=PROVIDER)
    await db_session.commit()

    assert await _handle_rows(db_session, "u9") == ["alice"]
    assert await _handle_rows(db_session, "u1") == ["alice2"]


# ── Consent ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_accept_policies_creates_user(db_session: AsyncSession) -> None:
    policy = ConsentPolicy(privacy_version="2026-02-12", terms_version="2026-02-12")
    user = await accept_policies(db_session, "u1", policy, provider=PROVIDER)
    assert user.handle is None
    assert user.age_confirmed is True
    assert user.consent_accepted_at is not None
    assert consent_satisfied(user, policy)


@pytest.mark.asyncio
async def test_consent_lapses_on_new_version(db_session: AsyncSession) -> None:
    old = ConsentPolicy(privacy_version="2025-01-01", terms_version="2025-01-01")
    user = await accept_policies(db_session, "u1", old)
    current = ConsentPolicy(privacy_version="2026-02-12", terms_version="2025-01-01")
    assert not consent_satisfied(user, current)
    assert not consent_satisfied(None, current)


@pytest.mark.asyncio
async def test_consent_requires_age_confirmation(db_session: AsyncSession) -> None:
    policy = ConsentPolicy(privacy_version="v1", terms_version="v1")
    user = User(uid="u1", privacy_version="v1", terms_version="v1", age_confirmed=False)
    assert not consent_satisfied(user, policy)


def test_consent_policy_from_settings(test_settings) -> None:
    relaxed = test_settings.model_copy(
        update={"privacy_policy_version": "v2", "terms_version": "v3", "consent_required": False}
    )
    assert ConsentPolicy.from_settings(relaxed) == ConsentPolicy(
        privacy_version="v2", terms_version="v3", enforced=False
    )

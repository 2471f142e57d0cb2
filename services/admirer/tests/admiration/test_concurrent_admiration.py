import asyncio

import pytest
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.admiration.models import AdmirationEdge, Match
from app.admiration.service import AdmirationResult, add_admiration
from app.exceptions import AlreadyAdmired
from app.identity.models import Stats
from app.identity.service import ConsentPolicy, accept_policies, upsert_identity

Factory = async_sessionmaker[AsyncSession]


async def _sync(factory: Factory, policy: ConsentPolicy, uid: str, handle: str) -> None:
    async with factory() as session:
        await upsert_identity(session, uid, handle, f"x-{uid}", provider="twitter.com")
        await accept_policies(session, uid, policy, provider="twitter.com")
        await session.commit()


async def _admire(
    factory: Factory, policy: ConsentPolicy, from_uid: str, to_handle: str
) -> AdmirationResult | None:
    """Each call gets its own session and transaction; None when it lost a duplicate race."""
    async with factory() as session:
        try:
            result = await add_admiration(session, from_uid, to_handle, policy)
            await session.commit()
        except AlreadyAdmired:
            return None
        return result


async def _count(factory: Factory, model) -> int:
    async with factory() as session:
        return await session.scalar(sa.select(sa.func.count()).select_from(model))


async def _stats(factory: Factory, uid: str) -> Stats:
    async with factory() as session:
        return await session.get(Stats, uid)


@pytest.mark.asyncio
async def test_crossing_admirations_match_exactly_once(
    session_factory: Factory, policy: ConsentPolicy
) -> None:
    await _sync(session_factory, policy, "u1", "alice")
    await _sync(session_factory, policy, "u2", "bob")

    results = await asyncio.gather(
        _admire(session_factory, policy, "u1", "bob"),
        _admire(session_factory, policy, "u2", "alice"),
    )

    assert sorted(r.matched for r in results) == [False, True]
    assert await _count(session_factory, AdmirationEdge) == 2
    assert await _count(session_factory, Match) == 2
    for uid in ("u1", "u2"):
        stats = await _stats(session_factory, uid)
        assert (stats.outgoing_count, stats.incoming_count, stats.match_count) == (1, 1, 1)


@pytest.mark.asyncio
async def test_duplicate_admirations_count_once(
    session_factory: Factory, policy: ConsentPolicy
) -> None:
    await _sync(session_factory, policy, "u1", "alice")
    await _sync(session_factory, policy, "u2", "bob")

    results = await asyncio.gather(
        _admire(session_factory, policy, "u1", "bob"),
        _admire(session_factory, policy, "u1", "bob"),
    )

    assert sum(r is not None for r in results) == 1
    assert await _count(session_factory, AdmirationEdge) == 1
    assert (await _stats(session_factory, "u1")).outgoing_count == 1
    assert (await _stats(session_factory, "u2")).incoming_count == 1

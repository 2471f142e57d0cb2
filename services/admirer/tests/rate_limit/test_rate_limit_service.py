import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import RateLimited
from app.rate_limit.constants import ACTION_LIMITS, Action
from app.rate_limit.models import RateLimitWindow
from app.rate_limit.service import enforce

T0 = 1_760_000_000_000


async def _window(session: AsyncSession, action: Action, uid: str) -> RateLimitWindow:
    return await session.get(RateLimitWindow, (action.value, uid), populate_existing=True)


@pytest.mark.asyncio
async def test_limit_plus_one_is_rejected(db_session: AsyncSession) -> None:
    rule = ACTION_LIMITS[Action.DELETE_ACCOUNT]
    for i in range(rule.limit):
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0 + i)
    with pytest.raises(RateLimited) as exc_info:
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0 + rule.limit)
    assert exc_info.value.code == "resource-exhausted"
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_rejected_call_does_not_increment(db_session: AsyncSession) -> None:
    rule = ACTION_LIMITS[Action.DELETE_ACCOUNT]
    for i in range(rule.limit):
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0 + i)
    for _ in range(3):
        with pytest.raises(RateLimited):
            await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0 + 10)
    window = await _window(db_session, Action.DELETE_ACCOUNT, "u1")
    assert window.count == rule.limit
    assert window.window_start_ms == T0


@pytest.mark.asyncio
async def test_window_resets_after_window_length(db_session: AsyncSession) -> None:
    rule = ACTION_LIMITS[Action.DELETE_ACCOUNT]
    for i in range(rule.limit):
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0 + i)

    later = T0 + rule.window_ms
    await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=later)

    window = await _window(db_session, Action.DELETE_ACCOUNT, "u1")
    assert window.window_start_ms == later
    assert window.count == 1


@pytest.mark.asyncio
async def test_window_not_reset_just_before_boundary(db_session: AsyncSession) -> None:
    rule = ACTION_LIMITS[Action.DELETE_ACCOUNT]
    for i in range(rule.limit):
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0)
    with pytest.raises(RateLimited):
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0 + rule.window_ms - 1)


@pytest.mark.asyncio
async def test_budgets_are_per_action_and_per_user(db_session: AsyncSession) -> None:
    rule = ACTION_LIMITS[Action.DELETE_ACCOUNT]
    for _ in range(rule.limit):
        await enforce(db_session, "u1", Action.DELETE_ACCOUNT, now_ms=T0)

    await enforce(db_session, "u2", Action.DELETE_ACCOUNT, now_ms=T0)
    await enforce(db_session, "u1", Action.GET_DASHBOARD, now_ms=T0)

    assert (await _window(db_session, Action.DELETE_ACCOUNT, "u2")).count == 1
    assert (await _window(db_session, Action.GET_DASHBOARD, "u1")).count == 1


def test_every_action_has_a_budget() -> None:
    assert set(ACTION_LIMITS) == set(Action)
    assert ACTION_LIMITS[Action.ADD_ADMIRATION].limit == 20
    assert ACTION_LIMITS[Action.ADD_ADMIRATION].window_ms == 3_600_000

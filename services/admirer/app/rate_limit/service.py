"""
Rate limiting — durable per-user, per-action fixed windows.

A window older than the action's window length is restarted at "now"; a
burst straddling the boundary can therefore see up to twice the limit.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import RateLimited
from app.rate_limit.constants import ACTION_LIMITS, Action
from app.rate_limit.models import RateLimitWindow
from shared.database.postgres import insert_ignore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


async def enforce(
    session: AsyncSession,
    uid: str,
    action: Action,
    *,
    now_ms: int | None = None,
) -> None:
    """
    Count one call of ``action`` by ``uid`` or raise RateLimited.

    The counter is committed on its own before the operation runs, so an
    operation that fails afterwards still uses up budget.  A rejected call
    does not increment.
    """
    rule = ACTION_LIMITS[action]
    now = _now_ms() if now_ms is None else now_ms

    await insert_ignore(
        session,
        RateLimitWindow,
        {"action": action.value, "uid": uid, "window_start_ms": now, "count": 0},
    )
    result = await session.execute(
        sa.select(RateLimitWindow)
        .where(RateLimitWindow.action == action.value, RateLimitWindow.uid == uid)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    window = result.scalar_one()

    if now - window.window_start_ms >= rule.window_ms:
        window.window_start_ms = now
        window.count = 0

    if window.count >= rule.limit:
        await session.rollback()
        logger.warning("Rate limit hit: uid=%s action=%s", uid, action.value)
        raise RateLimited()

    window.count += 1
    window.updated_at = datetime.now(timezone.utc)
    await session.commit()

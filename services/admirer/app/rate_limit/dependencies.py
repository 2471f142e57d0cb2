"""
Rate limiting — FastAPI dependency factory.

    current_user: SessionClaims = Depends(rate_limited(Action.ADD_ADMIRATION))

authenticates the caller and spends one unit of the action's budget before
the route body runs.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.rate_limit.constants import Action
from app.rate_limit.service import enforce
from shared.models.user import SessionClaims


def rate_limited(action: Action) -> Callable[..., Awaitable[SessionClaims]]:
    async def _dependency(
        current_user: SessionClaims = Depends(get_current_user),
        session: AsyncSession = Depends(get_db),
    ) -> SessionClaims:
        await enforce(session, current_user.uid, action)
        return current_user

    return _dependency

"""
Admiration domain — router.

No DELETE route: sent admirations are final.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.admiration.controller import add_admiration as add_admiration_controller
from app.admiration.schemas import AddAdmirationRequest, AddAdmirationResponse
from app.config import Settings, get_settings
from app.database import get_db
from app.rate_limit.constants import Action
from app.rate_limit.dependencies import rate_limited
from shared.models.user import SessionClaims

router = APIRouter(prefix="/admirations", tags=["admirations"])


@router.post(
    "",
    response_model=AddAdmirationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Secretly admire a user; reveals a match when it is mutual",
)
async def add_admiration(
    body: AddAdmirationRequest,
    current_user: SessionClaims = Depends(rate_limited(Action.ADD_ADMIRATION)),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AddAdmirationResponse:
    return await add_admiration_controller(session, current_user, body, settings)

"""
Identity domain — router.

Only HTTP concerns live here: routes, status codes, dependencies.
``/claim`` is an alias of ``/sync`` with its own rate-limit budget.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.identity.controller import (
    accept_policies as accept_policies_controller,
    sync_identity as sync_identity_controller,
)
from app.identity.schemas import (
    AcceptPoliciesResponse,
    SyncIdentityRequest,
    SyncIdentityResponse,
)
from app.rate_limit.constants import Action
from app.rate_limit.dependencies import rate_limited
from shared.models.user import SessionClaims

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post(
    "/sync",
    response_model=SyncIdentityResponse,
    summary="Link the signed-in X account's handle to this user",
)
async def sync_identity(
    body: SyncIdentityRequest | None = None,
    current_user: SessionClaims = Depends(rate_limited(Action.SYNC_IDENTITY)),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SyncIdentityResponse:
    return await sync_identity_controller(
        session, current_user, body or SyncIdentityRequest(), settings
    )


@router.post(
    "/claim",
    response_model=SyncIdentityResponse,
    summary="Claim the signed-in X account's handle",
)
async def claim_handle(
    body: SyncIdentityRequest | None = None,
    current_user: SessionClaims = Depends(rate_limited(Action.CLAIM_HANDLE)),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SyncIdentityResponse:
    return await sync_identity_controller(
        session, current_user, body or SyncIdentityRequest(), settings
    )


@router.post(
    "/policies/accept",
    response_model=AcceptPoliciesResponse,
    summary="Accept the current Privacy Policy and Terms (18+)",
)
async def accept_policies(
    current_user: SessionClaims = Depends(rate_limited(Action.ACCEPT_POLICIES)),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AcceptPoliciesResponse:
    return await accept_policies_controller(session, current_user, settings)

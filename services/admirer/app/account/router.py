"""
Account domain — router.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.account.controller import delete_account as delete_account_controller
from app.account.schemas import DeleteAccountRequest, DeleteAccountResponse
from app.auth.dependencies import get_provider_admin
from app.auth.provider import IdentityProviderAdmin
from app.database import get_db
from app.rate_limit.constants import Action
from app.rate_limit.dependencies import rate_limited
from shared.models.user import SessionClaims

router = APIRouter(prefix="/account", tags=["account"])


@router.post(
    "/delete",
    response_model=DeleteAccountResponse,
    summary="Permanently delete the signed-in account and its data",
)
async def delete_account(
    body: DeleteAccountRequest,
    current_user: SessionClaims = Depends(rate_limited(Action.DELETE_ACCOUNT)),
    session: AsyncSession = Depends(get_db),
    provider_admin: IdentityProviderAdmin = Depends(get_provider_admin),
) -> DeleteAccountResponse:
    return await delete_account_controller(session, current_user, body, provider_admin)

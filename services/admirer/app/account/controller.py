"""
Account domain — controller (request orchestration layer).
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.account.schemas import DeleteAccountRequest, DeleteAccountResponse
from app.account.service import delete_account as delete_account_service
from app.auth.provider import IdentityProviderAdmin
from shared.models.user import SessionClaims


async def delete_account(
    session: AsyncSession,
    current_user: SessionClaims,
    body: DeleteAccountRequest,
    provider_admin: IdentityProviderAdmin,
) -> DeleteAccountResponse:
    await delete_account_service(session, current_user.uid, body.confirmation, provider_admin)
    return DeleteAccountResponse()

"""
Identity domain — controller (request orchestration layer).

Resolves the session's handle, persists it and shapes the response.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.identity.schemas import (
    AcceptPoliciesResponse,
    SyncIdentityRequest,
    SyncIdentityResponse,
)
from app.identity.service import (
    ConsentPolicy,
    accept_policies as accept_policies_service,
    resolve_handle,
    upsert_identity,
)
from shared.models.user import SessionClaims


async def sync_identity(
    session: AsyncSession,
    current_user: SessionClaims,
    body: SyncIdentityRequest,
    settings: Settings,
) -> SyncIdentityResponse:
    provider = settings.sign_in_provider
    handle = await resolve_handle(session, current_user, body.handle, provider=provider)
    await upsert_identity(
        session,
        current_user.uid,
        handle,
        current_user.external_id(provider),
        provider=provider,
    )
    return SyncIdentityResponse(handle=handle)


async def accept_policies(
    session: AsyncSession,
    current_user: SessionClaims,
    settings: Settings,
) -> AcceptPoliciesResponse:
    policy = ConsentPolicy.from_settings(settings)
    user = await accept_policies_service(
        session, current_user.uid, policy, provider=settings.sign_in_provider
    )
    return AcceptPoliciesResponse(
        privacy_version=user.privacy_version,
        terms_version=user.terms_version,
        accepted_at=user.consent_accepted_at,
    )

"""
Admirer service — auth-specific FastAPI dependencies.

These wrap the shared session-token dependency and add service context:
only sessions from the designated identity provider are accepted.
"""
from __future__ import annotations

from fastapi import Depends

from app.auth.provider import HttpIdentityProviderAdmin, IdentityProviderAdmin
from app.config import Settings, get_settings
from app.exceptions import SignInRequired, WrongSignInProvider
from shared.auth.dependencies import get_session_claims_optional
from shared.models.user import SessionClaims


def get_current_user(
    claims: SessionClaims | None = Depends(get_session_claims_optional),
    settings: Settings = Depends(get_settings),
) -> SessionClaims:
    """Raise 401 without a valid session, 403 for any other sign-in method."""
    if claims is None:
        raise SignInRequired()
    if claims.sign_in_provider != settings.sign_in_provider:
        raise WrongSignInProvider()
    return claims


def get_provider_admin(settings: Settings = Depends(get_settings)) -> IdentityProviderAdmin:
    return HttpIdentityProviderAdmin(
        base_url=settings.provider_admin_base_url,
        project_id=settings.provider_project_id,
        access_token=settings.provider_admin_token,
        timeout=settings.provider_admin_timeout_seconds,
    )

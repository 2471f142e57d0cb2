from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.auth.config import SessionTokenSettings
from shared.models.user import SessionClaims

http_bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_token_settings() -> SessionTokenSettings:
    return SessionTokenSettings()


def decode_session_token(token: str, settings: SessionTokenSettings) -> dict:
    payload = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        audience=settings.audience,
    )
    return payload


def payload_to_claims(payload: dict) -> SessionClaims:
    uid = payload.get("sub")
    if not uid:
        raise ValueError("Missing sub in token")
    provider_block = payload.get("firebase") or {}
    identities_raw = provider_block.get("identities") or {}
    identities = {
        str(provider): [str(x) for x in ids]
        for provider, ids in identities_raw.items()
        if isinstance(ids, list)
    }
    # Only explicit handle claims are trusted; generic `username`-style
    # fields can hold provider placeholders.
    screen_name = payload.get("screen_name") or payload.get("screenName")
    return SessionClaims(
        uid=str(uid),
        sign_in_provider=provider_block.get("sign_in_provider"),
        identities=identities,
        screen_name=str(screen_name) if screen_name else None,
    )


async def get_session_claims_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: SessionTokenSettings = Depends(get_token_settings),
) -> SessionClaims | None:
    if not credentials or not credentials.credentials:
        return None
    token = credentials.credentials
    try:
        payload = decode_session_token(token, settings)
        return payload_to_claims(payload)
    except (JWTError, ValueError, KeyError):
        return None

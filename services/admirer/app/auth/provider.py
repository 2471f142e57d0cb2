"""
Admirer service — identity-provider admin integration.

The only server-side call made to the identity provider is deleting the
auth identity when an account is removed.  Uses httpx against the provider's
admin REST API; the caller decides how to treat "already gone".
"""
from __future__ import annotations

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)


class IdentityNotFound(Exception):
    """The provider has no identity for this uid (already deleted)."""


class IdentityProviderError(Exception):
    """Any other provider failure (network, auth, 5xx, unexpected body)."""


class IdentityProviderAdmin(Protocol):
    async def delete_user(self, uid: str) -> None: ...


_USER_NOT_FOUND = "USER_NOT_FOUND"


def _error_message(resp: httpx.Response) -> str:
    """``error.message`` from the response body; empty when the body has another shape."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return ""
    return str(error.get("message", ""))


class HttpIdentityProviderAdmin:
    def __init__(
        self,
        *,
        base_url: str,
        project_id: str,
        access_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/projects/{project_id}/accounts:delete"
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport

    async def delete_user(self, uid: str) -> None:
        """
        Delete the auth identity for ``uid``.

        Raises IdentityNotFound when the provider reports the user missing,
        IdentityProviderError on anything else that is not a 200.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._url,
                    json={"localId": uid},
                    headers={"Authorization": f"Bearer {self._access_token}"},
                )
        except httpx.HTTPError as exc:
            raise IdentityProviderError(str(exc)) from exc

        if resp.status_code == 200:
            return

        message = _error_message(resp)
        if message.startswith(_USER_NOT_FOUND):
            raise IdentityNotFound(uid)
        logger.warning(
            "Identity deletion failed for uid=%s status=%s message=%s",
            uid, resp.status_code, message,
        )
        raise IdentityProviderError(f"HTTP {resp.status_code}: {message}")

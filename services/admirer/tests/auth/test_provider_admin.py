import json

import httpx
import pytest

from app.auth.provider import HttpIdentityProviderAdmin, IdentityNotFound, IdentityProviderError


def _admin(handler) -> HttpIdentityProviderAdmin:
    return HttpIdentityProviderAdmin(
        base_url="https://identity.test/v1/",
        project_id="admirer-test",
        access_token="tok",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_delete_user_posts_local_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    await _admin(handler).delete_user("u1")

    assert str(seen[0].url) == "https://identity.test/v1/projects/admirer-test/accounts:delete"
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert json.loads(seen[0].content) == {"localId": "u1"}


@pytest.mark.asyncio
async def test_user_not_found_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "USER_NOT_FOUND"}})

    with pytest.raises(IdentityNotFound):
        await _admin(handler).delete_user("u1")


@pytest.mark.asyncio
async def test_other_failures_raise_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    with pytest.raises(IdentityProviderError):
        await _admin(handler).delete_user("u1")


@pytest.mark.asyncio
async def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(IdentityProviderError):
        await _admin(handler).delete_user("u1")


@pytest.mark.parametrize(
    "body",
    [["USER_NOT_FOUND"], {"error": "USER_NOT_FOUND"}, {"error": None}, "plain string"],
)
@pytest.mark.asyncio
async def test_unexpected_error_bodies_raise_provider_error(body) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json=body)

    with pytest.raises(IdentityProviderError):
        await _admin(handler).delete_user("u1")

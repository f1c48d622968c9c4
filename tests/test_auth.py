import httpx
import pytest
from fastapi import HTTPException

from dayfit.core.auth import IdentityProvider, get_identity_provider

TOKEN = "good-token"


def identity_handler(request: httpx.Request) -> httpx.Response:
    assert request.url.path == "/auth/v1/user"
    if request.headers.get("Authorization") != f"Bearer {TOKEN}":
        return httpx.Response(401, json={"msg": "invalid JWT"})
    return httpx.Response(
        200,
        json={"id": "user-1", "email": "ana.garcia@example.com", "user_metadata": {}},
    )


def make_provider(handler=identity_handler):
    return IdentityProvider(
        "https://auth.example.com",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
    )


def test_get_user_falls_back_to_email_local_part():
    user = make_provider().get_user(TOKEN)
    assert user.id == "user-1"
    assert user.name == "ana.garcia"
    assert user.role == "User"


def test_get_user_uses_metadata_name_and_role():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "id": "user-2",
                "email": "b@example.com",
                "user_metadata": {"full_name": "Bea Puig", "role": "Admin"},
            },
        )

    user = make_provider(handler).get_user(TOKEN)
    assert user.name == "Bea Puig"
    assert user.role == "Admin"


def test_invalid_token_is_no_user():
    assert make_provider().get_user("expired") is None


def test_provider_error_is_bad_gateway():
    provider = make_provider(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(HTTPException) as exc:
        provider.get_user(TOKEN)
    assert exc.value.status_code == 502


def test_unreachable_provider_is_service_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(HTTPException) as exc:
        make_provider(handler).get_user(TOKEN)
    assert exc.value.status_code == 503


@pytest.fixture
def auth_client(client):
    client.app.dependency_overrides[get_identity_provider] = lambda: make_provider()
    return client


def test_session_with_bearer_token(auth_client):
    resp = auth_client.get("/v1/user/session", headers={"Authorization": f"Bearer {TOKEN}"})
    assert resp.json() == {"authenticated": True}


def test_session_with_cookie(auth_client):
    auth_client.cookies.set("access_token", TOKEN)
    assert auth_client.get("/v1/user/session").json() == {"authenticated": True}


def test_session_without_token_is_not_an_error(auth_client):
    resp = auth_client.get("/v1/user/session")
    assert resp.status_code == 200
    assert resp.json() == {"authenticated": False}


def test_session_with_bad_token(auth_client):
    resp = auth_client.get("/v1/user/session", headers={"Authorization": "Bearer nope"})
    assert resp.json() == {"authenticated": False}

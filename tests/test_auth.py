import json

import httpx
import pytest
from starlette.authentication import AuthenticationError
from starlette.requests import HTTPConnection

from app.auth import (
    BearerTokenBackend,
    HttpTokenVerifier,
    StaticTokenVerifier,
    verifier_from_config,
)
from app.config import Config


def connection(authorization: str | None = None) -> HTTPConnection:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return HTTPConnection({"type": "http", "headers": headers})


def identity_provider(request: httpx.Request) -> httpx.Response:
    token = json.loads(request.content)["token"]
    match token:
        case "good":
            return httpx.Response(200, json={"uid": "u1"})
        case "garbled":
            return httpx.Response(200, content=b"<html>")
        case "down":
            raise httpx.ConnectError("Connection refused", request=request)
        case _:
            return httpx.Response(401, json={"error": "unknown token"})


@pytest.fixture
def http_verifier() -> HttpTokenVerifier:
    client = httpx.AsyncClient(transport=httpx.MockTransport(identity_provider))
    return HttpTokenVerifier("https://auth.example.com/verify", client=client)


@pytest.mark.asyncio
async def test_static_verifier() -> None:
    verifier = StaticTokenVerifier({"secret": "u1"})
    assert await verifier.verify("secret") == "u1"
    with pytest.raises(AuthenticationError, match="Invalid token"):
        await verifier.verify("guess")


@pytest.mark.asyncio
async def test_http_verifier_accepts(http_verifier: HttpTokenVerifier) -> None:
    assert await http_verifier.verify("good") == "u1"


@pytest.mark.parametrize("token", ("bad", "garbled", "down"))
@pytest.mark.asyncio
async def test_http_verifier_rejects(
    http_verifier: HttpTokenVerifier, token: str
) -> None:
    with pytest.raises(AuthenticationError):
        await http_verifier.verify(token)


@pytest.mark.asyncio
async def test_backend_authenticates() -> None:
    backend = BearerTokenBackend(StaticTokenVerifier({"secret": "u1"}))
    result = await backend.authenticate(connection("Bearer secret"))
    assert result is not None
    credentials, user = result
    assert credentials.scopes == ["authenticated"]
    assert user.uid == "u1"
    assert user.is_authenticated


@pytest.mark.asyncio
async def test_backend_without_header() -> None:
    backend = BearerTokenBackend(StaticTokenVerifier({}))
    assert await backend.authenticate(connection()) is None


@pytest.mark.parametrize("header", ("Basic secret", "Bearer", "Bearer   "))
@pytest.mark.asyncio
async def test_backend_rejects_malformed_header(header: str) -> None:
    backend = BearerTokenBackend(StaticTokenVerifier({"secret": "u1"}))
    with pytest.raises(AuthenticationError, match="Invalid authorization header"):
        await backend.authenticate(connection(header))


def test_verifier_from_config() -> None:
    assert isinstance(
        verifier_from_config(Config(auth_tokens={"a": "b"})), StaticTokenVerifier
    )
    assert isinstance(
        verifier_from_config(Config(auth_url="https://auth.example.com")),
        HttpTokenVerifier,
    )

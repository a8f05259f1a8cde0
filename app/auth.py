import logging
from typing import Protocol

import httpx
from starlette.authentication import (
    AuthCredentials,
    AuthenticationBackend,
    AuthenticationError,
    SimpleUser,
)
from starlette.requests import HTTPConnection
from starlette.responses import JSONResponse

from app.config import Config


logger = logging.getLogger(__name__)


TIMEOUT = 10


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> str:
        """Return the uid the token belongs to or raise `AuthenticationError`."""
        ...


class StaticTokenVerifier:
    def __init__(self, tokens: dict[str, str]) -> None:
        self.tokens = tokens

    async def verify(self, token: str) -> str:
        try:
            return self.tokens[token]
        except KeyError:
            raise AuthenticationError("Invalid token") from None


class HttpTokenVerifier:
    """Asks an identity provider who a token belongs to.

    The provider gets `{"token": ...}` and answers `{"uid": ...}` with a 200.
    """

    def __init__(self, url: str, client: httpx.AsyncClient | None = None) -> None:
        self.url = url
        self.client = httpx.AsyncClient(timeout=TIMEOUT) if client is None else client

    async def verify(self, token: str) -> str:
        try:
            resp = await self.client.post(self.url, json={"token": token})
        except httpx.HTTPError as e:
            logger.error("Identity provider unreachable: %r", e)
            raise AuthenticationError("Could not verify token") from e

        if resp.status_code != 200:
            raise AuthenticationError("Invalid token")

        try:
            data = resp.json()
        except ValueError as e:
            raise AuthenticationError("Invalid token") from e

        uid = data.get("uid") if isinstance(data, dict) else None
        if not isinstance(uid, str) or not uid:
            raise AuthenticationError("Invalid token")
        return uid

    async def close(self) -> None:
        await self.client.aclose()


class RecipeBookUser(SimpleUser):
    @property
    def uid(self) -> str:
        return self.username


class BearerTokenBackend(AuthenticationBackend):
    def __init__(self, verifier: TokenVerifier) -> None:
        self.verifier = verifier

    async def authenticate(
        self, conn: HTTPConnection
    ) -> tuple[AuthCredentials, RecipeBookUser] | None:
        if "Authorization" not in conn.headers:
            return None

        scheme, _, token = conn.headers["Authorization"].partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise AuthenticationError("Invalid authorization header")

        uid = await self.verifier.verify(token)
        return AuthCredentials(["authenticated"]), RecipeBookUser(uid)


def on_auth_error(conn: HTTPConnection, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=401)


def verifier_from_config(config: Config) -> TokenVerifier:
    if config.auth_url:
        return HttpTokenVerifier(config.auth_url)
    return StaticTokenVerifier(config.auth_tokens)

"""Bearer-token → identity resolution.

The API never issues tokens. Production asks the hosted auth service who
the token belongs to; development derives a stable fake identity.
"""

from __future__ import annotations

import hashlib
from typing import Protocol

import httpx
import structlog

from roomrevive.errors import UnauthorizedError

logger = structlog.get_logger()

_AUTH_TIMEOUT = 10.0


def parse_bearer(header: str | None) -> str | None:
    """Extract the token from an ``Authorization`` header value."""
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


class IdentityResolver(Protocol):
    async def resolve(self, token: str) -> str: ...


class MockIdentityResolver:
    """Stable per-token identity, for local development only."""

    async def resolve(self, token: str) -> str:
        if not token:
            raise UnauthorizedError()
        return "dev-" + hashlib.sha256(token.encode()).hexdigest()[:16]


class AuthServiceResolver:
    """Resolves tokens against the auth service's ``/auth/v1/user`` endpoint."""

    def __init__(
        self,
        auth_url: str,
        api_key: str,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._user_url = auth_url.rstrip("/") + "/auth/v1/user"
        self._api_key = api_key
        self._http = http or httpx.AsyncClient(timeout=_AUTH_TIMEOUT)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def resolve(self, token: str) -> str:
        if not token:
            raise UnauthorizedError()
        try:
            response = await self._http.get(
                self._user_url,
                headers={"Authorization": f"Bearer {token}", "apikey": self._api_key},
            )
        except httpx.RequestError as exc:
            # Auth outage (here or a 5xx below) is an operator problem, not a bad token
            logger.error("auth_service_unreachable", error_type=type(exc).__name__)
            raise

        if response.status_code in (401, 403):
            logger.info("auth_token_rejected", status=response.status_code)
            raise UnauthorizedError()
        if response.status_code >= 500:
            logger.error("auth_service_error", status=response.status_code)
            response.raise_for_status()
        if response.status_code >= 400:
            logger.warning("auth_request_rejected", status=response.status_code)
            raise UnauthorizedError()

        try:
            data = response.json()
        except ValueError:
            data = None
        user_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(user_id, str) or not user_id:
            logger.warning("auth_response_missing_id")
            raise UnauthorizedError()
        return user_id

"""
IdentityClient — async HTTP transport to the identity service.

Wraps the three auth endpoints (``/register/``, ``/token/``,
``/token/refresh/``) plus the gated ``/me/`` endpoint.  Every failure,
whether an HTTP error status or a transport problem, is raised as
``IdentityServiceError`` so callers have a single thing to catch.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from client.schemas import TokenPair
from config.settings import config

logger = logging.getLogger(__name__)


class IdentityServiceError(Exception):
    """The identity service rejected a request or could not be reached."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail if status_code is None else f"{status_code}: {detail}")


def auth_headers(access_token: str) -> Dict[str, str]:
    """Headers for an authenticated request."""
    return {"Authorization": f"Bearer {access_token}"}


class IdentityClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.api_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "IdentityClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise IdentityServiceError(f"Identity service unreachable: {exc}") from exc

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.info("%s %s → %d: %s", method, path, resp.status_code, detail)
            raise IdentityServiceError(detail, resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise IdentityServiceError(
                f"Malformed response body from {path}", resp.status_code
            ) from exc
        if not isinstance(body, dict):
            raise IdentityServiceError(
                f"Expected a JSON object from {path}", resp.status_code
            )
        return body

    async def obtain_token(self, username: str, password: str) -> TokenPair:
        data = await self._request(
            "POST", "/token/", json={"username": username, "password": password}
        )
        return _token_pair(data)

    async def register(self, username: str, email: str, password: str) -> TokenPair:
        data = await self._request(
            "POST",
            "/register/",
            json={"username": username, "email": email, "password": password},
        )
        return _token_pair(data)

    async def refresh_token(self, refresh: str) -> str:
        """Exchange a refresh token for a new access token."""
        data = await self._request("POST", "/token/refresh/", json={"refresh": refresh})
        access = data.get("access")
        if not access or not isinstance(access, str):
            raise IdentityServiceError("Refresh response carried no access token")
        return access

    async def whoami(self, access_token: str) -> Dict[str, Any]:
        return await self._request("GET", "/me/", headers=auth_headers(access_token))


def _token_pair(data: Dict[str, Any]) -> TokenPair:
    if not data.get("access") or not data.get("refresh"):
        raise IdentityServiceError("Token response is missing access or refresh")
    try:
        return TokenPair(access=data["access"], refresh=data["refresh"])
    except ValidationError as exc:
        raise IdentityServiceError(f"Token response is malformed: {exc}") from exc


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)

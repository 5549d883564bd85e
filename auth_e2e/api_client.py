"""HTTP wrapper around the auth service endpoints.

Every operation returns an `Envelope` regardless of the HTTP status; callers
apply a contract from `auth_e2e.contracts`. Only transport failures raise, as
`NetworkError`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

import httpx

from auth_e2e.errors import NetworkError
from auth_e2e.test_data import TestUser

logger = logging.getLogger(__name__)

JWT_COOKIE_NAME = "jwt"
JWT_REFRESH_COOKIE_NAME = "jwt-refresh"


@dataclass
class Envelope:
    """Status code plus parsed JSON body of one response."""

    status: int
    body: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @classmethod
    def from_response(cls, response: httpx.Response) -> "Envelope":
        body: Dict[str, Any] = {}
        if response.content:
            try:
                parsed = response.json()
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                body = parsed
        return cls(
            status=response.status_code,
            body=body,
            headers=dict(response.headers),
            cookies=dict(response.cookies),
            text=response.text,
        )

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def message(self) -> Any:
        return self.body.get("message")

    @property
    def error(self) -> Any:
        return self.body.get("error")

    @property
    def jwt(self) -> str | None:
        return self.cookies.get(JWT_COOKIE_NAME)


class AuthApiClient:
    """Async client for the auth service API.

    Example:
        async with AuthApiClient(settings.auth_base_url) as api:
            envelope = await api.signup(generate_test_user("signup"))
            expect_successful_signup(envelope)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "AuthApiClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=False,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Envelope:
        client = self.client
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(method, url, str(exc) or exc.__class__.__name__) from exc
        finally:
            # No cookie state carries over between calls.
            client.cookies.clear()
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return Envelope.from_response(response)

    # ---- operations -------------------------------------------------------------
    async def root(self) -> Envelope:
        return await self._request("GET", "/")

    async def health_check(self) -> Envelope:
        return await self._request("GET", "/health-check")

    async def signup(self, user_data: TestUser | Mapping[str, Any]) -> Envelope:
        """POST /signup. The record is sent as-is; the service does all validation."""
        payload = user_data.to_payload() if isinstance(user_data, TestUser) else dict(user_data)
        return await self._request("POST", "/signup", json=payload)

    async def login(self, credentials: TestUser | Mapping[str, Any]) -> Envelope:
        payload = credentials.credentials() if isinstance(credentials, TestUser) else dict(credentials)
        return await self._request("POST", "/login", json=payload)

    async def logout(self, session_token: str | None) -> Envelope:
        """POST /logout presenting the token as the `jwt` cookie (none if token is None)."""
        headers = {}
        if session_token is not None:
            headers["Cookie"] = f"{JWT_COOKIE_NAME}={session_token}"
        return await self._request("POST", "/logout", headers=headers)

    async def verify_2fa(self, email: str, login_attempt_id: str, code: str) -> Envelope:
        payload = {"email": email, "loginAttemptId": login_attempt_id, "2FACode": code}
        return await self._request("POST", "/verify-2fa", json=payload)

    async def verify_token(self, token: str) -> Envelope:
        return await self._request("POST", "/verify-token", json={"token": token})

    async def delete_account(self, email: str) -> Envelope:
        return await self._request("DELETE", "/delete-account", json={"email": email})

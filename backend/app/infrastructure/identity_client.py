"""Resilient Identity Client — wraps the Supabase Auth (GoTrue) REST API with retry and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, other request errors): max `max_retries` retries with exponential backoff
    - Timeouts and other 4xx: immediate failure, no retry
    - Credential/token rejections (400/401/403/422) → AuthenticationError
    - Everything else → IdentityProviderError (core/errors.py)
    - Admin endpoints require the service-role key; without it → ConfigurationError

Design Decisions:
    - httpx.AsyncClient over the provider SDK: the backend needs six endpoints,
      and an injectable transport keeps tests offline (httpx.MockTransport)
    - ±25% jitter on backoff
"""

import asyncio
import logging
import random
import time

import httpx
from pydantic import ValidationError

from app.config import get_settings
from app.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorContext,
    IdentityProviderError,
    ResourceNotFoundError,
)
from app.schemas.identity import ProviderAuthResponse, ProviderSession, ProviderUser

logger = logging.getLogger(__name__)

_CREDENTIAL_STATUSES = (400, 401, 403, 422)
_SIGNED_OUT_STATUSES = (401, 403, 404)


def _provider_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {response.status_code}"


class ResilientIdentityClient:
    """Async client for the identity provider's auth endpoints."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str | None = None,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.auth_url = base_url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.client = httpx.AsyncClient(
            base_url=self.auth_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    # ─── Public API ─────────────────────────────────────────────

    async def sign_up(
        self, email: str, password: str, metadata: dict | None = None,
    ) -> ProviderAuthResponse:
        """Register a user. Session is None when email confirmation is pending."""
        response = await self._request(
            "POST", "/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )
        self._raise_for_status(response)
        return self._parse_auth_body(response)

    async def sign_in_with_password(
        self, email: str, password: str,
    ) -> ProviderAuthResponse:
        response = await self._request(
            "POST", "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._raise_for_status(response)
        return self._parse_auth_body(response)

    async def refresh_session(self, refresh_token: str) -> ProviderAuthResponse:
        response = await self._request(
            "POST", "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        self._raise_for_status(response)
        return self._parse_auth_body(response)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session. Tokens the provider no longer knows count as signed out."""
        response = await self._request("POST", "/logout", bearer=access_token)
        if response.status_code in _SIGNED_OUT_STATUSES:
            logger.info(
                "Sign-out for an already invalid session",
                extra={"status_code": response.status_code},
            )
            return
        self._raise_for_status(response)

    async def get_user(self, access_token: str) -> ProviderUser:
        response = await self._request("GET", "/user", bearer=access_token)
        self._raise_for_status(response)
        return self._parse_model(ProviderUser, response)

    async def get_user_by_id(self, user_id: str) -> ProviderUser:
        """Admin lookup; needs the service-role key."""
        if not self.service_role_key:
            raise ConfigurationError(
                "SUPABASE_SERVICE_ROLE_KEY is required for user lookups",
            )
        response = await self._request(
            "GET", f"/admin/users/{user_id}", admin=True,
        )
        if response.status_code == 404:
            raise ResourceNotFoundError("User", user_id)
        self._raise_for_status(response)
        return self._parse_model(ProviderUser, response)

    async def aclose(self) -> None:
        await self.client.aclose()

    # ─── Transport ──────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
        bearer: str | None = None,
        admin: bool = False,
    ) -> httpx.Response:
        """Send with retry on 429/5xx/connection errors. Returns the final response."""
        headers = self._headers(bearer=bearer, admin=admin)
        context = ErrorContext(resource=path)
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(
                    method, path, json=json, params=params, headers=headers,
                )
            except httpx.TimeoutException:
                raise IdentityProviderError(
                    "Request timed out", "timeout", context=context,
                )
            except httpx.RequestError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}: {_provider_message(response)}",
                    attempt, context,
                )
                continue
            if attempt:
                logger.info(
                    "Identity provider recovered after retry",
                    extra={"attempt": attempt + 1, "path": path},
                )
            return response
        raise IdentityProviderError(
            "Retries exhausted", "connection_error", context=context,
        )

    def _headers(self, *, bearer: str | None, admin: bool) -> dict[str, str]:
        if admin:
            key = self.service_role_key or ""
            return {"apikey": key, "Authorization": f"Bearer {key}"}
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {bearer or self.anon_key}",
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = _provider_message(response)
        if response.status_code in _CREDENTIAL_STATUSES:
            raise AuthenticationError(message)
        raise IdentityProviderError(message, f"http_{response.status_code}")

    # ─── Parsing ────────────────────────────────────────────────

    def _parse_auth_body(self, response: httpx.Response) -> ProviderAuthResponse:
        """Session bodies carry access_token; confirmation-pending sign-ups return a bare user."""
        body = self._json(response)
        try:
            if "access_token" in body:
                if body.get("expires_at") is None and body.get("expires_in"):
                    body["expires_at"] = int(time.time()) + int(body["expires_in"])
                session = ProviderSession.model_validate(body)
                return ProviderAuthResponse(user=session.user, session=session)
            user = ProviderUser.model_validate(body.get("user") or body)
            return ProviderAuthResponse(user=user)
        except ValidationError as e:
            raise IdentityProviderError(
                f"Malformed auth response: {e.error_count()} error(s)",
                "malformed_response",
            )

    def _parse_model(self, model: type[ProviderUser], response: httpx.Response) -> ProviderUser:
        try:
            return model.model_validate(self._json(response))
        except ValidationError as e:
            raise IdentityProviderError(
                f"Malformed user response: {e.error_count()} error(s)",
                "malformed_response",
            )

    def _json(self, response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            raise IdentityProviderError("Response is not JSON", "malformed_response")
        if not isinstance(body, dict):
            raise IdentityProviderError("Response is not an object", "malformed_response")
        return body

    # ─── Retry policy ───────────────────────────────────────────

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise IdentityProviderError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Identity provider rate limit, retry after {delay}ms",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext,
    ) -> None:
        if attempt >= self.max_retries:
            raise IdentityProviderError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Identity provider transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Retry-After header in milliseconds (header value is seconds)."""
        val = response.headers.get("retry-after")
        if not val:
            return None
        try:
            return int(float(val) * 1000)
        except ValueError:
            return None


_identity_client: ResilientIdentityClient | None = None


def build_identity_client(**overrides) -> ResilientIdentityClient:
    settings = get_settings()
    kwargs = dict(
        base_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        service_role_key=settings.supabase_service_role_key,
        max_retries=settings.identity_max_retries,
        base_delay_ms=settings.identity_base_delay_ms,
        max_delay_ms=settings.identity_max_delay_ms,
        timeout_seconds=settings.identity_timeout_seconds,
    )
    kwargs.update(overrides)
    return ResilientIdentityClient(**kwargs)


def get_identity_client() -> ResilientIdentityClient:
    """FastAPI dependency — process-wide client, created on first use."""
    global _identity_client
    if _identity_client is None:
        _identity_client = build_identity_client()
    return _identity_client


async def close_identity_client() -> None:
    global _identity_client
    if _identity_client is not None:
        await _identity_client.aclose()
    _identity_client = None

"""Auth Session — client-side session state on top of the identity provider.

Owns what the mobile AuthProvider did: restore a persisted session at startup,
sign up / in / out with username-or-email, notify listeners of auth events,
and keep tokens fresh while the app is in the foreground.

Invariants:
    - The persisted session is always written through LargeSecureStore (encrypted)
    - initialized becomes True after initialize() even when restoring fails
    - Provider errors from sign_up / sign_in / sign_out are logged and re-raised
    - Listener failures are logged and never interrupt the auth flow
    - Only a rejected refresh token drops a stored session; provider outages keep it
    - At most one auto-refresh task runs at a time
"""

import asyncio
import inspect
import logging
from contextlib import suppress
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from pydantic import ValidationError

from app.config import Settings
from app.core.errors import AuthenticationError, IdentityProviderError, StarterError
from app.core.identity import (
    format_username_as_email,
    session_expires_within,
    storage_key_for,
)
from app.infrastructure.identity_client import (
    ResilientIdentityClient,
    build_identity_client,
)
from app.schemas.identity import ProviderAuthResponse, ProviderSession
from app.services.secure_storage import LargeSecureStore, build_secure_store

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


AuthStateCallback = Callable[
    [AuthEvent, ProviderSession | None], Awaitable[None] | None,
]


class Subscription:
    """Handle returned by on_auth_state_change."""

    def __init__(self, listeners: list[AuthStateCallback], callback: AuthStateCallback):
        self._listeners = listeners
        self.callback = callback

    def unsubscribe(self) -> None:
        with suppress(ValueError):
            self._listeners.remove(self.callback)


class AuthSession:
    """Session holder driving sign-in state and token persistence."""

    def __init__(
        self,
        identity: ResilientIdentityClient,
        storage: LargeSecureStore,
        storage_key: str,
        email_domain: str = "app.local",
        tick_seconds: float = 30,
        tick_threshold: int = 3,
        clock: Callable[[], datetime] | None = None,
    ):
        self.identity = identity
        self.storage = storage
        self.storage_key = storage_key
        self.email_domain = email_domain
        self.tick_seconds = tick_seconds
        self.tick_threshold = tick_threshold
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners: list[AuthStateCallback] = []
        self._refresh_task: asyncio.Task | None = None
        self.initialized = False
        self.session: ProviderSession | None = None

    @property
    def landing_route(self) -> str:
        return "/" if self.session else "/welcome"

    @property
    def auto_refresh_running(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    # ─── Lifecycle ──────────────────────────────────────────────

    async def initialize(self) -> ProviderSession | None:
        """Restore the persisted session, refreshing it when already expired."""
        try:
            stored = self._load_session()
            if stored and session_expires_within(stored.expires_at, self._clock(), 0):
                stored = await self._recover_expired(stored)
            self.session = stored
        except Exception as e:
            logger.error(f"Auth initialization error: {e}", exc_info=True)
        self.initialized = True
        await self._emit(AuthEvent.INITIAL_SESSION)
        return self.session

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    # ─── Credentials ────────────────────────────────────────────

    async def sign_up(self, username: str, password: str) -> ProviderAuthResponse:
        """Register; the original username is kept in user metadata."""
        email = format_username_as_email(username, self.email_domain)
        try:
            result = await self.identity.sign_up(
                email, password, metadata={"username": username},
            )
        except StarterError as e:
            logger.error(f"Error signing up: {e.message}", extra={"error_code": e.code})
            raise
        if result.session:
            await self._store_session(result.session, AuthEvent.SIGNED_IN)
            logger.info("User signed up", extra={"auth_event": AuthEvent.SIGNED_IN.value})
        else:
            logger.info("No session returned from sign up")
        return result

    async def sign_in(self, username: str, password: str) -> ProviderAuthResponse:
        email = format_username_as_email(username, self.email_domain)
        try:
            result = await self.identity.sign_in_with_password(email, password)
        except StarterError as e:
            logger.error(f"Error signing in: {e.message}", extra={"error_code": e.code})
            raise
        if result.session:
            await self._store_session(result.session, AuthEvent.SIGNED_IN)
            logger.info("User signed in", extra={"auth_event": AuthEvent.SIGNED_IN.value})
        else:
            logger.info("No session returned from sign in")
        return result

    async def sign_out(self) -> None:
        if self.session:
            try:
                await self.identity.sign_out(self.session.access_token)
            except StarterError as e:
                logger.error(f"Error signing out: {e.message}", extra={"error_code": e.code})
                raise
        await self._clear_session()
        logger.info("User signed out", extra={"auth_event": AuthEvent.SIGNED_OUT.value})

    async def refresh(self) -> ProviderSession:
        if not self.session:
            raise AuthenticationError("No session to refresh")
        result = await self.identity.refresh_session(self.session.refresh_token)
        if not result.session:
            raise IdentityProviderError(
                "Refresh returned no session", "malformed_response",
            )
        await self._store_session(result.session, AuthEvent.TOKEN_REFRESHED)
        return result.session

    # ─── Auto refresh ───────────────────────────────────────────

    def start_auto_refresh(self) -> None:
        if self.auto_refresh_running:
            return
        self._refresh_task = asyncio.create_task(self._auto_refresh_loop())

    async def stop_auto_refresh(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def handle_app_state(self, state: str) -> None:
        """Foreground ("active") keeps tokens fresh; any other state pauses refresh."""
        if state == "active":
            self.start_auto_refresh()
        else:
            await self.stop_auto_refresh()

    async def auto_refresh_tick(self) -> None:
        """Refresh when the session expires within tick_seconds * tick_threshold."""
        if not self.session:
            return
        margin = self.tick_seconds * self.tick_threshold
        if not session_expires_within(self.session.expires_at, self._clock(), margin):
            return
        try:
            await self.refresh()
        except AuthenticationError as e:
            logger.warning(f"Refresh token rejected, signing out: {e.message}")
            await self._clear_session()
        except StarterError as e:
            logger.warning(f"Auto refresh failed: {e.message}", extra={"error_code": e.code})

    async def _auto_refresh_loop(self) -> None:
        while True:
            try:
                await self.auto_refresh_tick()
            except Exception as e:
                logger.error(f"Auto refresh tick crashed: {e}", exc_info=True)
            await asyncio.sleep(self.tick_seconds)

    # ─── Persistence ────────────────────────────────────────────

    def _load_session(self) -> ProviderSession | None:
        raw = self.storage.get_item(self.storage_key)
        if not raw:
            return None
        try:
            return ProviderSession.model_validate_json(raw)
        except ValidationError:
            logger.warning(
                "Discarding unreadable persisted session",
                extra={"storage_key": self.storage_key},
            )
            self.storage.remove_item(self.storage_key)
            return None

    async def _recover_expired(self, stored: ProviderSession) -> ProviderSession | None:
        """Refresh an expired stored session.

        A rejected refresh token drops the session; provider outages keep it
        for the auto-refresh loop to retry.
        """
        try:
            result = await self.identity.refresh_session(stored.refresh_token)
        except AuthenticationError as e:
            logger.warning(f"Stored session could not be refreshed: {e.message}")
            self.storage.remove_item(self.storage_key)
            return None
        except StarterError as e:
            logger.warning(
                f"Identity provider unreachable, keeping stored session: {e.message}",
                extra={"error_code": e.code},
            )
            return stored
        if result.session:
            self.storage.set_item(self.storage_key, result.session.model_dump_json())
        else:
            self.storage.remove_item(self.storage_key)
        return result.session

    async def _store_session(self, session: ProviderSession, event: AuthEvent) -> None:
        self.session = session
        self.storage.set_item(self.storage_key, session.model_dump_json())
        await self._emit(event)

    async def _clear_session(self) -> None:
        self.session = None
        self.storage.remove_item(self.storage_key)
        await self._emit(AuthEvent.SIGNED_OUT)

    async def _emit(self, event: AuthEvent) -> None:
        email = self.session.user.email if self.session else None
        logger.info(
            f"Auth state changed: {event.value} {email or ''}".rstrip(),
            extra={"auth_event": event.value},
        )
        for callback in list(self._listeners):
            try:
                result = callback(event, self.session)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Auth listener failed: {e}", exc_info=True)


def build_auth_session(settings: Settings) -> AuthSession:
    """Wire an AuthSession from settings (file-backed secure storage, real provider)."""
    return AuthSession(
        identity=build_identity_client(),
        storage=build_secure_store(settings),
        storage_key=storage_key_for(settings.supabase_url),
        email_domain=settings.username_email_domain,
        tick_seconds=settings.auto_refresh_tick_seconds,
        tick_threshold=settings.auto_refresh_tick_threshold,
    )

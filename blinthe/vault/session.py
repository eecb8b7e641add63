"""
Session management - who is signed in, and until when.

The SessionManager owns the single session slot. It is the only writer; other
components read it through `session` or observe changes with `subscribe()`.
Expiry is enforced two ways: an asyncio timer that logs out when it fires, and
a deadline check on every read so an expired session is never handed out even
when no event loop is running to fire the timer.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import SESSION_TIMEOUT_SECONDS
from ..errors import CryptoFailure, ValidationError
from ..logging import get_logger
from .crypto import ALGORITHM, DerivedKey, EncryptedRecord, derive_key, hash_string
from .storage import StorageBackend

logger = get_logger("vault.session")

SESSION_STORAGE_KEY = "blinthe.session"

MIN_USERNAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6

# Input events a UI layer reports to keep the session alive
ACTIVITY_EVENTS = frozenset({"mousedown", "keydown", "touchstart", "scroll", "click"})


@dataclass
class Session:
    """The signed-in user and the session deadline (epoch seconds)."""

    username: str
    expires_at: float
    encryption_key: Optional[DerivedKey] = field(default=None, repr=False)

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


class StoredSessionRecord(BaseModel):
    """Durable counterpart of Session, persisted under SESSION_STORAGE_KEY."""
    model_config = ConfigDict(populate_by_name=True)

    username: str
    password_hash: str = Field(alias="passwordHash")
    encrypted_session: EncryptedRecord = Field(alias="encryptedSession")


@dataclass
class AuthResult:
    success: bool
    error: Optional[str] = None


SessionListener = Callable[[Optional[Session]], None]


def validate_credentials(username: str, password: str) -> None:
    """Raise ValidationError for credentials too short to accept."""
    if not username or len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class SessionManager:
    """Owns authentication state, session timeout and restoration."""

    def __init__(
        self,
        storage: StorageBackend,
        timeout: float = SESSION_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.timeout = timeout
        self._clock = clock
        self._session: Optional[Session] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: list[SessionListener] = []

    # --- Observation ---

    @property
    def session(self) -> Optional[Session]:
        """The live session, or None. An expired session is logged out on read."""
        if self._session is not None and self._session.is_expired(self._clock()):
            logger.info("Session for %s expired", self._session.username)
            self.logout()
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call `listener` with the new session (or None) on every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("Session listener failed")

    def _set_session(self, session: Optional[Session]) -> None:
        self._session = session
        self._notify()

    # --- Lifecycle ---

    def init(self) -> bool:
        """Application start: restore a persisted session if there is one."""
        return self.restore_session()

    def teardown(self) -> None:
        """Application stop: cancel the timer and drop listeners. Keeps the stored record."""
        self._cancel_timer()
        self._listeners.clear()

    # --- Transitions ---

    async def authenticate(self, username: str, password: str) -> AuthResult:
        """
        Sign in (or create the local identity).

        Credential shape is checked before any key derivation. Concurrent calls
        race on the session slot; whichever finishes last wins.
        """
        try:
            validate_credentials(username, password)
        except ValidationError as e:
            return AuthResult(success=False, error=str(e))

        try:
            derived = await derive_key(password)
            password_hash = hash_string(password)

            # The session itself is not encrypted; the record keeps the slot
            # so the stored shape stays stable
            stored = StoredSessionRecord(
                username=username,
                password_hash=password_hash,
                encrypted_session=EncryptedRecord(ciphertext="", iv="", salt="", algorithm=ALGORITHM),
            )
            self.storage.set_item(SESSION_STORAGE_KEY, stored.model_dump_json(by_alias=True))
        except (CryptoFailure, OSError) as e:
            logger.error("Authentication failed for %s: %s", username, e)
            return AuthResult(success=False, error=str(e))

        self._set_session(Session(
            username=username,
            expires_at=self._clock() + self.timeout,
            encryption_key=derived,
        ))
        self._arm_timer()
        logger.info("Authenticated %s", username)
        return AuthResult(success=True)

    def restore_session(self) -> bool:
        """
        Resume from the persisted record.

        A stored record with a non-empty username is trusted as-is; the
        password is not re-verified.
        """
        raw = self.storage.get_item(SESSION_STORAGE_KEY)
        if not raw:
            return False

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored session record is not valid JSON")
            return False

        username = data.get("username") if isinstance(data, dict) else None
        if not isinstance(username, str) or not username:
            return False

        self._set_session(Session(username=username, expires_at=self._clock() + self.timeout))
        self._arm_timer()
        logger.info("Restored session for %s", username)
        return True

    def logout(self) -> None:
        """Clear the session, its stored record and the timer. Safe to repeat."""
        had_session = self._session is not None
        self._session = None
        self.storage.remove_item(SESSION_STORAGE_KEY)
        self._cancel_timer()
        if had_session:
            self._notify()

    def extend_session(self) -> None:
        """Push the deadline a full timeout window from now. No-op when anonymous."""
        session = self.session
        if session is None:
            return
        session.expires_at = self._clock() + self.timeout
        self._arm_timer()
        self._notify()

    def record_activity(self, event: str) -> bool:
        """Extend the session for a qualifying input event. Returns whether it qualified."""
        if event not in ACTIVITY_EVENTS:
            return False
        self.extend_session()
        return True

    # --- Timer ---

    def _arm_timer(self) -> None:
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule on; the read-time deadline check still applies
            return
        self._timer = loop.call_later(self.timeout, self._on_timeout)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self) -> None:
        self._timer = None
        if self._session is not None:
            logger.info("Session for %s timed out", self._session.username)
        self.logout()

    # --- Countdown ---

    def seconds_remaining(self) -> float:
        session = self.session
        if session is None:
            return 0.0
        return max(0.0, session.expires_at - self._clock())

    async def countdown(self, interval: float = 1.0) -> AsyncIterator[float]:
        """Yield the remaining session time every `interval` seconds until it reaches zero."""
        while True:
            remaining = self.seconds_remaining()
            yield remaining
            if remaining <= 0:
                return
            await asyncio.sleep(min(interval, remaining))

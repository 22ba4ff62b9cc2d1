"""
SessionController — the client's authentication state machine.

States are ``Anonymous`` and ``Authenticated``.  The ``SessionStore`` is the
single source of truth; the controller keeps a snapshot of it which is
re-hydrated on construction and whenever ``check_status()`` is called.

Synchronous transitions (``login``, ``logout``, ``check_status``) write the
store and swap the snapshot in one uninterrupted step, so no other coroutine
on the event loop ever observes half a transition.  The async operations
(``sign_in``, ``sign_up``, ``refresh``) only suspend while talking to the
identity service and apply their transition afterwards.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from client.identity import IdentityClient, IdentityServiceError
from client.schemas import Anonymous, Authenticated, AuthResult, SessionState
from client.storage import SessionStore

logger = logging.getLogger(__name__)

KEY_ACCESS = "access_token"
KEY_REFRESH = "refresh_token"
KEY_IDENTITY = "username"

LOGIN_FAILED = "Login failed. Please check your credentials and try again."
REGISTER_FAILED = "Registration failed. Please try again."
REFRESH_FAILED = "Could not refresh your session. Please try again or log in."
NOT_LOGGED_IN = "You are not logged in."
CANCELLED = "Request was cancelled."

Listener = Callable[[SessionState], None]


class Scope:
    """
    Lifetime of whatever started an async operation (a screen, a command).

    Once closed, late responses belonging to it are dropped instead of
    being applied to the session.
    """

    def __init__(self):
        self.active = True

    def close(self) -> None:
        self.active = False

    def __enter__(self) -> "Scope":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _is_stale(scope: Optional[Scope]) -> bool:
    return scope is not None and not scope.active


def _as_str(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


class SessionController:
    def __init__(self, store: SessionStore, identity: Optional[IdentityClient] = None):
        self.store = store
        self.identity = identity
        self._state: SessionState = Anonymous()
        self._listeners: List[Listener] = []
        self.check_status()

    # ── Snapshot ────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def logged_in(self) -> bool:
        return isinstance(self._state, Authenticated)

    @property
    def username(self) -> Optional[str]:
        match self._state:
            case Authenticated(identity=identity):
                return identity
            case Anonymous():
                return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener(state)`` after every state change.

        Listeners run after the store write and the snapshot swap, so the
        transition has already happened when they are called.  An exception
        raised by a listener propagates to the caller of the transition and
        the remaining listeners are not called.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # ── Synchronous transitions ─────────────────────────────────────────

    def check_status(self) -> SessionState:
        """Re-read the store and make the snapshot match it."""
        identity = _as_str(self.store.get(KEY_IDENTITY))
        access = _as_str(self.store.get(KEY_ACCESS))
        refresh = _as_str(self.store.get(KEY_REFRESH))

        if identity and access:
            state: SessionState = Authenticated(
                identity=identity, access_token=access, refresh_token=refresh
            )
        else:
            if identity or access:
                logger.warning(
                    "Inconsistent session in namespace %r (identity=%s, access token=%s)",
                    self.store.namespace,
                    "present" if identity else "absent",
                    "present" if access else "absent",
                )
            state = Anonymous()

        self._set_state(state)
        return state

    def login(self, access_token: str, refresh_token: str, identity: str) -> None:
        """
        Persist a session and switch to ``Authenticated``.

        Overwrites any existing session.  A ``StorageError`` aborts the
        login and leaves the snapshot untouched.
        """
        if not (access_token and refresh_token and identity):
            raise ValueError("access_token, refresh_token and identity are all required")

        self.store.set(KEY_IDENTITY, identity)
        self.store.set(KEY_ACCESS, access_token)
        self.store.set(KEY_REFRESH, refresh_token)

        self._set_state(
            Authenticated(
                identity=identity,
                access_token=access_token,
                refresh_token=refresh_token,
            )
        )
        logger.info("Logged in as %s", identity)

    def logout(self) -> None:
        """Remove every session key and switch to ``Anonymous``."""
        was_logged_in = self.logged_in
        self.store.clear_all()
        self._set_state(Anonymous())
        if was_logged_in:
            logger.info("Logged out")

    def get_access_token(self) -> Optional[str]:
        return _as_str(self.store.get(KEY_ACCESS))

    def get_refresh_token(self) -> Optional[str]:
        return _as_str(self.store.get(KEY_REFRESH))

    # ── Network-backed operations ───────────────────────────────────────

    def _client(self) -> IdentityClient:
        if self.identity is None:
            raise RuntimeError("SessionController has no IdentityClient configured")
        return self.identity

    async def sign_in(
        self, username: str, password: str, *, scope: Optional[Scope] = None
    ) -> AuthResult:
        """Obtain a token pair for the credentials and log in with it."""
        try:
            pair = await self._client().obtain_token(username, password)
        except IdentityServiceError as exc:
            logger.info("Login failed for %s: %s", username, exc)
            return AuthResult(ok=False, message=LOGIN_FAILED)

        if _is_stale(scope):
            logger.debug("Dropping login response for %s: scope closed", username)
            return AuthResult(ok=False, message=CANCELLED, cancelled=True)

        self.login(pair.access, pair.refresh, username)
        return AuthResult(ok=True, message=f"Welcome, {username}!")

    async def sign_up(
        self,
        username: str,
        email: str,
        password: str,
        *,
        scope: Optional[Scope] = None,
    ) -> AuthResult:
        """
        Create an account, then request a token pair for it and log in.

        If either call fails the session is left exactly as it was.
        """
        try:
            await self._client().register(username, email, password)
        except IdentityServiceError as exc:
            logger.info("Registration failed for %s: %s", username, exc)
            return AuthResult(ok=False, message=REGISTER_FAILED)

        if _is_stale(scope):
            logger.debug("Dropping registration response for %s: scope closed", username)
            return AuthResult(ok=False, message=CANCELLED, cancelled=True)

        logger.info("Registered %s, requesting tokens", username)
        return await self.sign_in(username, password, scope=scope)

    async def refresh(self, *, scope: Optional[Scope] = None) -> AuthResult:
        """
        Trade the stored refresh token for a new access token.

        The new token is only written if the session still holds the same
        refresh token when the response arrives.
        """
        refresh = self.get_refresh_token()
        if not self.logged_in or not refresh:
            return AuthResult(ok=False, message=NOT_LOGGED_IN)

        try:
            access = await self._client().refresh_token(refresh)
        except IdentityServiceError as exc:
            logger.info("Token refresh failed: %s", exc)
            return AuthResult(ok=False, message=REFRESH_FAILED)

        if _is_stale(scope):
            logger.debug("Dropping refresh response: scope closed")
            return AuthResult(ok=False, message=CANCELLED, cancelled=True)

        current = self._state
        if not isinstance(current, Authenticated) or self.get_refresh_token() != refresh:
            logger.info("Session changed during refresh; discarding new access token")
            return AuthResult(ok=False, message=CANCELLED, cancelled=True)

        self.store.set(KEY_ACCESS, access)
        self._set_state(current.model_copy(update={"access_token": access}))
        logger.debug("Access token refreshed for %s", current.identity)
        return AuthResult(ok=True, message="Session refreshed.")

"""Client session context: current user and profile with change listeners."""

import asyncio
from dataclasses import dataclass, replace
from typing import Callable

from ..config import SESSION_LOAD_TIMEOUT
from ..logging_config import get_logger
from ..models import Profile
from .identity import IIdentityService

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthState:
    """Snapshot of the session context."""

    user_id: str | None = None
    token: str | None = None
    profile: Profile | None = None
    loading: bool = True


AuthListener = Callable[[AuthState], None]


class SessionContext:
    """
    Session state passed explicitly to whatever needs the current user.

    State is read through ``state`` and observed through ``subscribe``;
    only the context's own operations change it.
    """

    def __init__(self, identity: IIdentityService, load_timeout: float = SESSION_LOAD_TIMEOUT):
        self._identity = identity
        self._load_timeout = load_timeout
        self._state = AuthState()
        self._listeners: list[AuthListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._state.user_id

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    async def initialize(self, token: str | None) -> None:
        """Restore a stored session; loading is released after the fallback timeout at most."""
        if not token:
            self._set(user_id=None, token=None, profile=None, loading=False)
            return

        try:
            session = await asyncio.wait_for(
                self._identity.get_session(token), self._load_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Session restore timed out after %.1fs", self._load_timeout)
            self._set(loading=False)
            return

        if session is None:
            self._set(user_id=None, token=None, profile=None, loading=False)
            return

        # User is known before the profile arrives
        self._set(user_id=session.user_id, token=session.token, loading=False)
        await self.refresh_profile()

    async def sign_in(self, email: str, password: str) -> None:
        session = await self._identity.sign_in(email, password)
        self._set(user_id=session.user_id, token=session.token, loading=False)
        await self.refresh_profile()

    async def sign_up(self, email: str, password: str, username: str) -> None:
        session = await self._identity.sign_up(email, password, username)
        self._set(user_id=session.user_id, token=session.token, loading=False)
        await self.refresh_profile()

    async def sign_out(self) -> None:
        if self._state.token:
            await self._identity.sign_out(self._state.token)
        self._set(user_id=None, token=None, profile=None, loading=False)

    async def refresh_profile(self) -> None:
        """Reload the current user's profile."""
        if not self._state.token:
            return
        try:
            profile = await self._identity.authenticate(self._state.token)
        except Exception:
            logger.exception("Profile fetch failed")
            return
        self._set(profile=profile)

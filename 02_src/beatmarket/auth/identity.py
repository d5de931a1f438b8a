"""Identity service: sign-up, sign-in and session tokens."""

import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import Protocol

from passlib.context import CryptContext

from ..config import MIN_PASSWORD_LENGTH
from ..errors import AuthenticationFailed, Conflict, ValidationFailed
from ..logging_config import get_logger
from ..models import Profile, Session
from ..storage import Storage

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


class IIdentityService(Protocol):
    """Authentication and session tokens."""

    async def sign_up(self, email: str, password: str, username: str) -> Session:
        """Create an account and profile, return a new session."""
        ...

    async def sign_in(self, email: str, password: str) -> Session:
        """Check credentials and return a new session."""
        ...

    async def sign_out(self, token: str) -> None:
        """Invalidate a session token."""
        ...

    async def get_session(self, token: str) -> Session | None:
        """Look up a session token."""
        ...

    async def authenticate(self, token: str) -> Profile:
        """Resolve a token to its user's profile."""
        ...


class IdentityService:
    """Identity service backed by the profiles and sessions tables."""

    def __init__(self, storage: Storage):
        self._storage = storage

    async def sign_up(self, email: str, password: str, username: str) -> Session:
        """Create an account and profile, return a new session."""
        email = email.strip().lower()
        username = username.strip()
        if not _EMAIL_RE.match(email):
            raise ValidationFailed("Invalid email address")
        if not username:
            raise ValidationFailed("Username is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        profile = Profile(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self._storage.create_profile(profile, hash_password(password))
        except Conflict as e:
            raise Conflict("Email or username already registered") from e

        logger.info("User signed up: %s", profile.id)
        return await self._issue_session(profile.id)

    async def sign_in(self, email: str, password: str) -> Session:
        """Check credentials and return a new session."""
        credentials = await self._storage.get_credentials(email.strip().lower())
        if not credentials or not verify_password(password, credentials[1]):
            raise AuthenticationFailed()
        return await self._issue_session(credentials[0])

    async def sign_out(self, token: str) -> None:
        """Invalidate a session token."""
        await self._storage.delete_session(token)

    async def get_session(self, token: str) -> Session | None:
        """Look up a session token."""
        return await self._storage.get_session(token)

    async def authenticate(self, token: str) -> Profile:
        """Resolve a token to its user's profile."""
        session = await self._storage.get_session(token)
        if not session:
            raise AuthenticationFailed("Invalid or expired session")
        profile = await self._storage.get_profile(session.user_id)
        if not profile:
            raise AuthenticationFailed("Invalid or expired session")
        return profile

    async def _issue_session(self, user_id: str) -> Session:
        session = Session(
            token=secrets.token_urlsafe(32),
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
        )
        await self._storage.save_session(session)
        return session

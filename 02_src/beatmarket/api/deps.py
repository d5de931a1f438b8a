"""Request dependencies: the signed-in user."""

from typing import Awaitable, Callable

from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..app import Application
from ..errors import AuthenticationFailed
from ..models import Profile

bearer_scheme = HTTPBearer(auto_error=False)

UserDependency = Callable[..., Awaitable[Profile]]
OptionalUserDependency = Callable[..., Awaitable[Profile | None]]


def current_user_dependency(app: Application) -> UserDependency:
    """Dependency resolving the bearer token to a profile; 401 without one."""

    async def current_user(
        credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    ) -> Profile:
        if credentials is None:
            raise AuthenticationFailed("Login required")
        return await app.identity.authenticate(credentials.credentials)

    return current_user


def optional_user_dependency(app: Application) -> OptionalUserDependency:
    """Like current_user_dependency, but anonymous requests get None."""

    async def optional_user(
        credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    ) -> Profile | None:
        if credentials is None:
            return None
        return await app.identity.authenticate(credentials.credentials)

    return optional_user

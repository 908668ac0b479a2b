"""Player model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from starlette.authentication import BaseUser


class AuthenticatedPlayer(BaseUser):
    """Authenticated player exposed as ``request.user``.

    Built by the auth backend from a valid session cookie.
    """

    def __init__(self, user_id: str, username: str, session_id: str) -> None:
        self._user_id = user_id
        self._username = username
        self._session_id = session_id

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:  # pragma: no cover
        return self._username

    @property
    def identity(self) -> str:
        return self._user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def username(self) -> str:
        return self._username

    @property
    def session_id(self) -> str:
        return self._session_id

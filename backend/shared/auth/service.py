"""Auth service coordinating registration, login, sessions and display names."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from uuid import uuid4

from shared.auth.models import Player

if TYPE_CHECKING:
    from shared.auth.models import AuthSession
    from shared.auth.password import PasswordHasher
    from shared.auth.session_store import AuthSessionStore
    from shared.dal.player_repository import PlayerRepository

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72  # bcrypt truncates at 72 bytes

DISPLAY_NAME_MAX_LENGTH = 50


class AuthError(Exception):
    """Authentication or registration failure."""


class AuthService:
    """Coordinate player registration, login, session validation and identity lookups."""

    def __init__(
        self,
        player_repo: PlayerRepository,
        session_store: AuthSessionStore | None = None,
        *,
        password_hasher: PasswordHasher,
    ) -> None:
        self._player_repo = player_repo
        self._session_store = session_store
        self._hasher = password_hasher

    async def register(self, username: str, password: str, display_name: str | None = None) -> Player:
        """Register a new player account. The display name defaults to the username."""
        _validate_username(username)
        _validate_password(password)
        name = _normalize_display_name(display_name if display_name is not None else username)
        if await self._player_repo.get_by_username(username) is not None:
            raise AuthError(f"Username '{username}' is already taken")

        player = Player(
            user_id=str(uuid4()),
            username=username,
            display_name=name,
            password_hash=await self._hasher.hash(password),
        )
        try:
            await self._player_repo.create_player(player)
        except ValueError as e:
            raise AuthError(str(e)) from e
        return player

    async def login(self, username: str, password: str) -> AuthSession:
        """Validate credentials and create a session."""
        store = self._require_session_store()
        player = await self._player_repo.get_by_username(username)
        if player is None:
            raise AuthError("Invalid credentials")
        if not await self._hasher.verify(password, player.password_hash):
            raise AuthError("Invalid credentials")
        return store.create_session(player.user_id, player.username)

    def validate_session(self, session_id: str | None) -> AuthSession | None:
        """Return the session if valid and not expired, otherwise None."""
        store = self._require_session_store()
        if session_id is None:
            return None
        return store.get_session(session_id)

    def logout(self, session_id: str) -> None:
        self._require_session_store().delete_session(session_id)

    async def get_player(self, user_id: str) -> Player | None:
        return await self._player_repo.get_by_id(user_id)

    async def display_name_of(self, user_id: str | None, default: str) -> str:
        """Resolve a participant's display name, falling back to ``default``."""
        if user_id is None:
            return default
        player = await self._player_repo.get_by_id(user_id)
        return player.display_name if player is not None else default

    async def update_display_name(self, user_id: str, display_name: str) -> Player:
        name = _normalize_display_name(display_name)
        player = await self._player_repo.update_display_name(user_id, name)
        if player is None:
            raise AuthError("Player not found")
        return player

    def _require_session_store(self) -> AuthSessionStore:
        if self._session_store is None:
            raise RuntimeError("session_store is required for session operations")
        return self._session_store


def _validate_username(username: str) -> None:
    """Validate username: 3-30 chars, alphanumeric + underscores."""
    if len(username) < USERNAME_MIN_LENGTH or len(username) > USERNAME_MAX_LENGTH:
        raise AuthError(f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters")
    if not USERNAME_PATTERN.match(username):
        raise AuthError("Username must contain only letters, numbers, and underscores")


def _validate_password(password: str) -> None:
    """Validate password: 8-72 chars, max 72 UTF-8 bytes (bcrypt limit)."""
    if len(password) < PASSWORD_MIN_LENGTH or len(password) > PASSWORD_MAX_LENGTH:
        raise AuthError(f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise AuthError(f"Password must not exceed {PASSWORD_MAX_LENGTH} bytes when encoded")


def _normalize_display_name(display_name: str) -> str:
    name = " ".join(display_name.split())
    if not name:
        raise AuthError("Display name must not be empty")
    if len(name) > DISPLAY_NAME_MAX_LENGTH:
        raise AuthError(f"Display name must be at most {DISPLAY_NAME_MAX_LENGTH} characters")
    return name

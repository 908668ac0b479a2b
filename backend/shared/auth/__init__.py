"""Identity provider: player accounts, password hashing and sessions."""

from shared.auth.models import AuthSession, Player
from shared.auth.password import get_hasher
from shared.auth.service import AuthError, AuthService
from shared.auth.session_store import AuthSessionStore
from shared.auth.settings import AuthSettings

__all__ = [
    "AuthError",
    "AuthService",
    "AuthSession",
    "AuthSessionStore",
    "AuthSettings",
    "Player",
    "get_hasher",
]

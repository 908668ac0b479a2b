"""Player account and session models for authentication."""

from dataclasses import dataclass

from pydantic import BaseModel, Field


class Player(BaseModel, frozen=True):
    """Player account stored in the player repository."""

    user_id: str
    username: str
    display_name: str = Field(min_length=1, max_length=50)
    password_hash: str = Field(min_length=1)  # bcrypt hash, or "simple$..." in tests


@dataclass
class AuthSession:
    """Server-side session for authenticated players."""

    session_id: str  # UUID, stored in cookie
    user_id: str
    username: str
    created_at: float  # time.time()
    expires_at: float  # time.time() + TTL

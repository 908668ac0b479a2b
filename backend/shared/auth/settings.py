"""Auth settings for the lobby's identity provider."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from shared.auth.session_store import DEFAULT_SESSION_TTL_SECONDS


class AuthSettings(BaseSettings):
    model_config = {"env_prefix": "AUTH_"}

    # "simple" is a fast SHA-256 hasher meant for tests only
    password_hasher: Literal["bcrypt", "simple"] = "bcrypt"

    session_ttl_seconds: int = Field(default=DEFAULT_SESSION_TTL_SECONDS, ge=60)

    # Cookie Secure flag -- True in production, False for local dev (HTTP)
    cookie_secure: bool = False

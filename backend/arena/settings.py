"""Arena client configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class ArenaSettings(BaseSettings):
    model_config = {"env_prefix": "ARENA_"}

    lobby_url: str = Field(default="http://localhost:8710", min_length=1)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    log_dir: str | None = None

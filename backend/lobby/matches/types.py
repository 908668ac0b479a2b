from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from shared.dal.models import GameMode, MatchConfig, ParticipantStats, Role


class DisplayNames(Protocol):
    """Resolves a participant id to the name shown to the opponent."""

    async def display_name_of(self, user_id: str | None, default: str) -> str: ...


class CreateMatchRequest(MatchConfig):
    model_config = ConfigDict(extra="forbid")


class ConfigureMatchRequest(MatchConfig):
    model_config = ConfigDict(extra="forbid")


class SubmitScoreRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Role
    score: int = Field(ge=0, strict=True)
    stats: ParticipantStats


class QuestionsQuery(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    subcategory: int = Field(default=0, ge=0)
    mode: GameMode = GameMode.VOCAB


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    username: str
    password: str
    display_name: str | None = None


class DisplayNameRequest(BaseModel):
    display_name: str

"""Async HTTP client for the lobby API.

Error responses are turned back into the shared MatchError classes, so client
code handles ``Conflict`` or ``Expired`` exactly as the lobby raised them.
Transport failures surface as ``httpx.HTTPError``.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import httpx

from shared.dal.models import (
    CategorySummary,
    GameMode,
    MatchConfig,
    MatchPreview,
    MatchRecord,
    MatchResult,
    ParticipantStats,
    Role,
    ScoreBoard,
    VocabItem,
)
from shared.errors import error_from_response

if TYPE_CHECKING:
    from types import TracebackType


def raise_for_error(response: httpx.Response) -> None:
    """Raise the matching MatchError for a non-2xx response."""
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    raise error_from_response(response.status_code, body)


class LobbyClient:
    """One participant's session against the lobby. Keeps the session cookie between calls."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> LobbyClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        response = await self._http.request(method, path, json=json, params=params)
        raise_for_error(response)
        return response

    # Identity

    async def register(self, username: str, password: str, display_name: str | None = None) -> dict[str, str]:
        body = {"username": username, "password": password, "display_name": display_name}
        return (await self._call("POST", "/api/auth/register", json=body)).json()

    async def login(self, username: str, password: str) -> dict[str, str]:
        body = {"username": username, "password": password}
        return (await self._call("POST", "/api/auth/login", json=body)).json()

    async def logout(self) -> None:
        await self._call("POST", "/api/auth/logout")

    async def me(self) -> dict[str, str]:
        return (await self._call("GET", "/api/me")).json()

    # Content

    async def categories(self) -> list[CategorySummary]:
        data = (await self._call("GET", "/api/content/categories")).json()
        return [CategorySummary.model_validate(c) for c in data["categories"]]

    async def questions(self, category: str, subcategory: int, mode: GameMode) -> list[VocabItem]:
        params = {"category": category, "subcategory": subcategory, "mode": mode.value}
        data = (await self._call("GET", "/api/content/questions", params=params)).json()
        return [VocabItem.model_validate(item) for item in data["items"]]

    # Lobby

    async def create_match(self, config: MatchConfig) -> MatchRecord:
        response = await self._call("POST", "/api/matches", json=config.model_dump(mode="json"))
        return MatchRecord.model_validate(response.json())

    async def active_match(self) -> MatchRecord | None:
        data = (await self._call("GET", "/api/matches/active")).json()
        return MatchRecord.model_validate(data["match"]) if data["match"] is not None else None

    async def preview(self, game_code: str) -> MatchPreview:
        return MatchPreview.model_validate((await self._call("GET", f"/api/matches/code/{game_code}")).json())

    async def join(self, game_code: str) -> MatchRecord:
        return MatchRecord.model_validate((await self._call("POST", f"/api/matches/code/{game_code}/join")).json())

    async def get_match(self, match_id: str) -> MatchRecord:
        return MatchRecord.model_validate((await self._call("GET", f"/api/matches/{match_id}")).json())

    async def configure(self, match_id: str, config: MatchConfig) -> MatchRecord:
        response = await self._call("POST", f"/api/matches/{match_id}/config", json=config.model_dump(mode="json"))
        return MatchRecord.model_validate(response.json())

    async def _action(self, match_id: str, action: str) -> MatchRecord:
        return MatchRecord.model_validate((await self._call("POST", f"/api/matches/{match_id}/{action}")).json())

    async def accept(self, match_id: str) -> MatchRecord:
        return await self._action(match_id, "accept")

    async def reject(self, match_id: str) -> MatchRecord:
        return await self._action(match_id, "reject")

    async def kick(self, match_id: str) -> MatchRecord:
        return await self._action(match_id, "kick")

    async def ready(self, match_id: str) -> MatchRecord:
        return await self._action(match_id, "ready")

    async def start(self, match_id: str) -> MatchRecord:
        return await self._action(match_id, "start")

    async def reset(self, match_id: str) -> MatchRecord:
        return await self._action(match_id, "reset")

    async def leave(self, match_id: str) -> MatchRecord | None:
        """Leave the match. Returns None when the lobby was deleted (host left)."""
        response = await self._call("POST", f"/api/matches/{match_id}/leave")
        if response.status_code == HTTPStatus.NO_CONTENT:
            return None
        return MatchRecord.model_validate(response.json())

    # Scores

    async def submit_score(self, match_id: str, role: Role, score: int, stats: ParticipantStats) -> ScoreBoard:
        body = {"role": role.value, "score": score, "stats": stats.model_dump(mode="json")}
        return ScoreBoard.model_validate((await self._call("POST", f"/api/matches/{match_id}/scores", json=body)).json())

    async def scores(self, match_id: str) -> ScoreBoard:
        return ScoreBoard.model_validate((await self._call("GET", f"/api/matches/{match_id}/scores")).json())

    async def resolve_result(self, match_id: str) -> MatchResult:
        return MatchResult.model_validate((await self._call("POST", f"/api/matches/{match_id}/result")).json())

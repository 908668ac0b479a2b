"""Match lobby endpoints: the HTTP face of LobbyService, scores and results."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse, Response

from lobby.matches.types import ConfigureMatchRequest, CreateMatchRequest, SubmitScoreRequest
from lobby.views.common import model_response, read_body
from shared.logging import bind_match_context

if TYPE_CHECKING:
    from starlette.requests import Request

    from lobby.matches.scores import ResultResolver, ScoreAggregator
    from lobby.matches.service import LobbyService


def _lobby(request: Request) -> LobbyService:
    return request.app.state.lobby_service


def _match_id(request: Request) -> str:
    match_id = request.path_params["match_id"]
    bind_match_context(match_id=match_id, user_id=request.user.user_id)
    return match_id


async def create_match(request: Request) -> Response:
    """POST /api/matches - open a lobby hosted by the caller."""
    config = await read_body(request, CreateMatchRequest)
    record = await _lobby(request).create(request.user.user_id, config)
    return model_response(record, status_code=HTTPStatus.CREATED)


async def active_match(request: Request) -> Response:
    """GET /api/matches/active - the caller's live lobby, if any."""
    record = await _lobby(request).find_active(request.user.user_id)
    return JSONResponse({"match": record.model_dump(mode="json") if record is not None else None})


async def preview_match(request: Request) -> Response:
    """GET /api/matches/code/{code}"""
    preview = await _lobby(request).preview(request.path_params["code"])
    return model_response(preview)


async def join_match(request: Request) -> Response:
    """POST /api/matches/code/{code}/join"""
    record = await _lobby(request).join(request.user.user_id, request.path_params["code"])
    return model_response(record)


async def get_match(request: Request) -> Response:
    """GET /api/matches/{match_id} - the record both clients poll."""
    record = await _lobby(request).get(_match_id(request), request.user.user_id)
    return model_response(record)


async def configure_match(request: Request) -> Response:
    match_id = _match_id(request)
    config = await read_body(request, ConfigureMatchRequest)
    record = await _lobby(request).configure(match_id, request.user.user_id, config)
    return model_response(record)


async def accept_opponent(request: Request) -> Response:
    record = await _lobby(request).accept(_match_id(request), request.user.user_id)
    return model_response(record)


async def reject_opponent(request: Request) -> Response:
    record = await _lobby(request).reject(_match_id(request), request.user.user_id)
    return model_response(record)


async def kick_opponent(request: Request) -> Response:
    record = await _lobby(request).kick(_match_id(request), request.user.user_id)
    return model_response(record)


async def mark_ready(request: Request) -> Response:
    record = await _lobby(request).ready(_match_id(request), request.user.user_id)
    return model_response(record)


async def leave_match(request: Request) -> Response:
    """POST /api/matches/{match_id}/leave - 204 when the host's leave deleted the match."""
    record = await _lobby(request).leave(_match_id(request), request.user.user_id)
    if record is None:
        return Response(status_code=HTTPStatus.NO_CONTENT)
    return model_response(record)


async def start_match(request: Request) -> Response:
    record = await _lobby(request).start(_match_id(request), request.user.user_id)
    return model_response(record)


async def reset_match(request: Request) -> Response:
    record = await _lobby(request).reset(_match_id(request), request.user.user_id)
    return model_response(record)


async def submit_score(request: Request) -> Response:
    """POST /api/matches/{match_id}/scores {role, score, stats}"""
    aggregator: ScoreAggregator = request.app.state.score_aggregator
    match_id = _match_id(request)
    body = await read_body(request, SubmitScoreRequest)
    board = await aggregator.submit(match_id, request.user.user_id, body.role, body.score, body.stats)
    return model_response(board)


async def read_scores(request: Request) -> Response:
    aggregator: ScoreAggregator = request.app.state.score_aggregator
    board = await aggregator.read(_match_id(request), request.user.user_id)
    return model_response(board)


async def resolve_result(request: Request) -> Response:
    """POST /api/matches/{match_id}/result - final result, marks the match finished."""
    resolver: ResultResolver = request.app.state.result_resolver
    result = await resolver.resolve(_match_id(request), request.user.user_id)
    return model_response(result)

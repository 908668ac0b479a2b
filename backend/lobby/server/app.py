from __future__ import annotations

import contextlib
from datetime import timedelta
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from lobby.auth.backend import SessionCookieBackend
from lobby.auth.policy import maintenance_only, protected_api, public_route, validate_route_auth_policy
from lobby.matches.scores import ResultResolver, ScoreAggregator
from lobby.matches.service import LobbyService
from lobby.matches.sweeper import MatchSweeper
from lobby.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from lobby.server.settings import LobbyServerSettings
from lobby.views import auth_handlers, content_handlers, maintenance_handlers, match_handlers
from shared.auth import AuthService, AuthSessionStore
from shared.auth.password import get_hasher
from shared.auth.settings import AuthSettings
from shared.db import Database, SqliteMatchRepository, SqlitePlayerRepository, SqliteVocabRepository, seed_vocabulary
from shared.errors import MatchError
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

_HTTP_ERROR_KINDS = {
    HTTPStatus.NOT_FOUND: "not_found",
    HTTPStatus.METHOD_NOT_ALLOWED: "method_not_allowed",
}


async def _match_error_handler(_request: Request, exc: Exception) -> Response:
    error = cast("MatchError", exc)
    return JSONResponse(error.to_dict(), status_code=error.status_code)


async def _http_error_handler(_request: Request, exc: Exception) -> Response:
    """Render routing errors (unknown path, wrong method) in the same JSON shape as MatchError."""
    http_exc = cast("HTTPException", exc)
    if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
        return Response(status_code=http_exc.status_code, headers=http_exc.headers)
    kind = _HTTP_ERROR_KINDS.get(http_exc.status_code, "error")
    return JSONResponse(
        {"error": kind, "message": http_exc.detail or ""},
        status_code=http_exc.status_code,
        headers=http_exc.headers,
    )


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def _build_routes() -> list[Route]:
    m = match_handlers
    return [
        # Identity
        Route("/api/auth/register", public_route(auth_handlers.register), methods=["POST"], name="register"),
        Route("/api/auth/login", public_route(auth_handlers.login), methods=["POST"], name="login"),
        Route("/api/auth/logout", public_route(auth_handlers.logout), methods=["POST"], name="logout"),
        Route("/api/me", protected_api(auth_handlers.me), methods=["GET"], name="me"),
        Route(
            "/api/me/display-name",
            protected_api(auth_handlers.update_display_name),
            methods=["POST"],
            name="update_display_name",
        ),
        # Content
        Route(
            "/api/content/categories",
            protected_api(content_handlers.list_categories),
            methods=["GET"],
            name="list_categories",
        ),
        Route(
            "/api/content/questions",
            protected_api(content_handlers.list_questions),
            methods=["GET"],
            name="list_questions",
        ),
        # Lobby; /active and /code/... must precede /{match_id}
        Route("/api/matches", protected_api(m.create_match), methods=["POST"], name="create_match"),
        Route("/api/matches/active", protected_api(m.active_match), methods=["GET"], name="active_match"),
        Route("/api/matches/code/{code}", protected_api(m.preview_match), methods=["GET"], name="preview_match"),
        Route("/api/matches/code/{code}/join", protected_api(m.join_match), methods=["POST"], name="join_match"),
        Route("/api/matches/{match_id}", protected_api(m.get_match), methods=["GET"], name="get_match"),
        Route("/api/matches/{match_id}/config", protected_api(m.configure_match), methods=["POST"], name="configure"),
        Route("/api/matches/{match_id}/accept", protected_api(m.accept_opponent), methods=["POST"], name="accept"),
        Route("/api/matches/{match_id}/reject", protected_api(m.reject_opponent), methods=["POST"], name="reject"),
        Route("/api/matches/{match_id}/kick", protected_api(m.kick_opponent), methods=["POST"], name="kick"),
        Route("/api/matches/{match_id}/ready", protected_api(m.mark_ready), methods=["POST"], name="ready"),
        Route("/api/matches/{match_id}/leave", protected_api(m.leave_match), methods=["POST"], name="leave"),
        Route("/api/matches/{match_id}/start", protected_api(m.start_match), methods=["POST"], name="start"),
        Route("/api/matches/{match_id}/reset", protected_api(m.reset_match), methods=["POST"], name="reset"),
        Route("/api/matches/{match_id}/scores", protected_api(m.submit_score), methods=["POST"], name="submit_score"),
        Route("/api/matches/{match_id}/scores", protected_api(m.read_scores), methods=["GET"], name="read_scores"),
        Route("/api/matches/{match_id}/result", protected_api(m.resolve_result), methods=["POST"], name="result"),
        # Maintenance
        Route(
            "/api/maintenance/expire-sweep",
            maintenance_only(maintenance_handlers.expire_sweep),
            methods=["POST"],
            name="expire_sweep",
        ),
        Route(
            "/api/maintenance/inactive-sweep",
            maintenance_only(maintenance_handlers.inactive_sweep),
            methods=["POST"],
            name="inactive_sweep",
        ),
        Route("/health", public_route(health), methods=["GET"], name="health"),
    ]


def create_app(
    settings: LobbyServerSettings | None = None,
    auth_settings: AuthSettings | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = LobbyServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()

    routes = _build_routes()
    validate_route_auth_policy(routes)

    db = Database(settings.database_path)
    db.connect()
    if settings.vocab_file is not None:
        vocab_path = Path(settings.vocab_file)
        if vocab_path.is_file():
            seed_vocabulary(db, vocab_path)
        else:
            logger.warning("vocabulary file not found, content endpoints will be empty", path=str(vocab_path))

    player_repo = SqlitePlayerRepository(db)
    match_repo = SqliteMatchRepository(db)
    session_store = AuthSessionStore(ttl_seconds=auth_settings.session_ttl_seconds)
    auth_service = AuthService(
        player_repo,
        session_store,
        password_hasher=get_hasher(auth_settings.password_hasher),
    )
    lobby_service = LobbyService(match_repo, auth_service, ttl_seconds=settings.lobby_ttl_seconds)
    sweeper = MatchSweeper(
        lobby_service,
        interval_seconds=settings.sweep_interval_seconds,
        inactive_threshold=timedelta(hours=settings.inactive_threshold_hours),
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        session_store.start_cleanup()
        sweeper.start()
        yield
        await sweeper.stop()
        await session_store.stop_cleanup()
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            MatchError: _match_error_handler,
            HTTPException: _http_error_handler,
        },
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(AuthenticationMiddleware, backend=SessionCookieBackend(auth_service))  # type: ignore[arg-type]
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Maintenance-Key"],
        allow_credentials=True,
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.db = db
    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.auth_service = auth_service
    app.state.vocab_repo = SqliteVocabRepository(db)
    app.state.lobby_service = lobby_service
    app.state.score_aggregator = ScoreAggregator(match_repo)
    app.state.result_resolver = ResultResolver(match_repo, auth_service)
    app.state.sweeper = sweeper

    logger.info("lobby server ready", database=settings.database_path)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory lobby.server.app:get_app."""
    s = LobbyServerSettings()
    auth = AuthSettings()
    setup_logging(log_dir=s.log_dir, service="lobby")
    return create_app(settings=s, auth_settings=auth)

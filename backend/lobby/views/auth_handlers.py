"""Auth endpoints: register, login, logout and the caller's profile."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse, Response

from lobby.auth.backend import SESSION_COOKIE
from lobby.matches.types import DisplayNameRequest, LoginRequest, RegisterRequest
from lobby.views.common import read_body
from shared.auth.service import AuthError
from shared.errors import Unauthorized, ValidationFailed

if TYPE_CHECKING:
    from starlette.requests import Request

    from shared.auth.models import AuthSession, Player
    from shared.auth.service import AuthService
    from shared.auth.settings import AuthSettings


def _player_body(player: Player) -> dict[str, str]:
    return {"user_id": player.user_id, "username": player.username, "display_name": player.display_name}


def _with_session_cookie(response: Response, session: AuthSession, auth_settings: AuthSettings) -> Response:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.session_id,
        httponly=True,
        samesite="lax",
        secure=auth_settings.cookie_secure,
        max_age=auth_settings.session_ttl_seconds,
        path="/",
    )
    return response


async def register(request: Request) -> Response:
    """POST /api/auth/register - create an account and log it in."""
    auth_service: AuthService = request.app.state.auth_service
    body = await read_body(request, RegisterRequest)
    try:
        player = await auth_service.register(body.username, body.password, body.display_name)
        session = await auth_service.login(body.username, body.password)
    except AuthError as e:
        raise ValidationFailed(str(e)) from e
    response = JSONResponse(_player_body(player), status_code=HTTPStatus.CREATED)
    return _with_session_cookie(response, session, request.app.state.auth_settings)


async def login(request: Request) -> Response:
    """POST /api/auth/login - validate credentials and set the session cookie."""
    auth_service: AuthService = request.app.state.auth_service
    body = await read_body(request, LoginRequest)
    try:
        session = await auth_service.login(body.username, body.password)
    except AuthError as e:
        raise Unauthorized(str(e)) from e
    player = await auth_service.get_player(session.user_id)
    if player is None:  # pragma: no cover - player deleted between login and lookup
        raise Unauthorized("Invalid credentials")
    response = JSONResponse(_player_body(player))
    return _with_session_cookie(response, session, request.app.state.auth_settings)


async def logout(request: Request) -> Response:
    """POST /api/auth/logout - drop the session and clear the cookie."""
    auth_service: AuthService = request.app.state.auth_service
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        auth_service.logout(session_id)
    response = JSONResponse({"status": "ok"})
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    return response


async def me(request: Request) -> Response:
    """GET /api/me - the caller's identity."""
    auth_service: AuthService = request.app.state.auth_service
    player = await auth_service.get_player(request.user.user_id)
    if player is None:
        raise Unauthorized("Account no longer exists")
    return JSONResponse(_player_body(player))


async def update_display_name(request: Request) -> Response:
    """POST /api/me/display-name - change the name shown to opponents."""
    auth_service: AuthService = request.app.state.auth_service
    body = await read_body(request, DisplayNameRequest)
    try:
        player = await auth_service.update_display_name(request.user.user_id, body.display_name)
    except AuthError as e:
        raise ValidationFailed(str(e)) from e
    return JSONResponse(_player_body(player))

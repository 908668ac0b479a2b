"""Maintenance endpoints for external schedulers (cron, uptime monitors)."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from lobby.matches.service import LobbyService


async def expire_sweep(request: Request) -> Response:
    """POST /api/maintenance/expire-sweep - delete waiting lobbies past their join window."""
    lobby: LobbyService = request.app.state.lobby_service
    deleted = await lobby.expire_waiting()
    return JSONResponse({"deleted": deleted})


async def inactive_sweep(request: Request) -> Response:
    """POST /api/maintenance/inactive-sweep - delete records idle past the threshold."""
    lobby: LobbyService = request.app.state.lobby_service
    hours = request.app.state.settings.inactive_threshold_hours
    deleted = await lobby.delete_inactive(timedelta(hours=hours))
    return JSONResponse({"deleted": deleted})

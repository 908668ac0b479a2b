"""Route auth policy helpers for fail-closed authorization.

Each helper wraps a route endpoint and sets the ``AUTH_POLICY_ATTR`` marker
so that startup validation can verify every route has an explicit auth policy.
"""

from __future__ import annotations

import functools
import ipaddress
import secrets
from typing import TYPE_CHECKING

from starlette.authentication import has_required_scope
from starlette.routing import Mount, Route

from shared.errors import Unauthorized

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Any

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    Endpoint = Callable[..., Awaitable[Response]]

AUTH_POLICY_ATTR = "__auth_policy__"
MAINTENANCE_KEY_HEADER = "x-maintenance-key"


def _mark(endpoint: Endpoint, policy: str, check: Callable[[Request], None] | None) -> Endpoint:
    """Wrap ``endpoint`` so the marker lives on the wrapper, not the original callable."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: Any) -> Response:  # noqa: ANN401
        if check is not None:
            check(request)
        return await endpoint(request, **kwargs)

    setattr(wrapper, AUTH_POLICY_ATTR, policy)
    return wrapper


def _require_session(request: Request) -> None:
    if not has_required_scope(request, ["authenticated"]):
        raise Unauthorized("Authentication required")


def _is_loopback(host: str | None) -> bool:
    if host is None:
        return False
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return host == "localhost"


def _require_maintenance_access(request: Request) -> None:
    """Allow a matching X-Maintenance-Key header, or a loopback client when enabled."""
    settings = request.app.state.settings
    provided = request.headers.get(MAINTENANCE_KEY_HEADER)
    if settings.maintenance_key and provided and secrets.compare_digest(provided, settings.maintenance_key):
        return
    if settings.maintenance_allow_local and _is_loopback(request.client.host if request.client else None):
        return
    raise Unauthorized("Maintenance access denied")


def protected_api(endpoint: Endpoint) -> Endpoint:
    """Require a session; unauthenticated requests get a 401 JSON error."""
    return _mark(endpoint, "protected_api", _require_session)


def maintenance_only(endpoint: Endpoint) -> Endpoint:
    """Require the maintenance key (or a loopback client when allowed)."""
    return _mark(endpoint, "maintenance", _require_maintenance_access)


def public_route(endpoint: Endpoint) -> Endpoint:
    """Mark endpoint as explicitly public (no auth required)."""
    return _mark(endpoint, "public", None)


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Verify every Route has an auth policy marker. Mount routes are exempt.

    Raises RuntimeError listing all unclassified routes if any are found.
    """
    unclassified: list[str] = []
    for route in routes:
        if isinstance(route, Mount):
            continue
        if isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR):
            name = route.name or getattr(route.endpoint, "__name__", "unknown")
            unclassified.append(f"{route.path} ({name})")

    if unclassified:
        details = ", ".join(unclassified)
        msg = f"Unclassified routes missing auth policy: {details}"
        raise RuntimeError(msg)

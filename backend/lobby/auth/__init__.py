"""Lobby authentication: Starlette backend, player model, and route policy."""

from lobby.auth.backend import SESSION_COOKIE, SessionCookieBackend
from lobby.auth.models import AuthenticatedPlayer
from lobby.auth.policy import maintenance_only, protected_api, public_route, validate_route_auth_policy

__all__ = [
    "SESSION_COOKIE",
    "AuthenticatedPlayer",
    "SessionCookieBackend",
    "maintenance_only",
    "protected_api",
    "public_route",
    "validate_route_auth_policy",
]

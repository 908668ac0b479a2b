"""Error taxonomy shared by the lobby service and its clients.

Each error carries an HTTP status and a short machine-readable ``kind``.
The lobby renders them as ``{"error": kind, "message": text}`` and the arena
client maps such responses back to the same classes.
"""

from __future__ import annotations

from http import HTTPStatus


class MatchError(Exception):
    """Base class for errors surfaced by lobby and score operations."""

    status_code: int = HTTPStatus.BAD_REQUEST
    kind: str = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class Unauthorized(MatchError):
    """No valid caller identity."""

    status_code = HTTPStatus.UNAUTHORIZED
    kind = "unauthorized"


class Forbidden(MatchError):
    """Caller lacks the role the operation requires."""

    status_code = HTTPStatus.FORBIDDEN
    kind = "forbidden"


class NotFound(MatchError):
    """Lobby id or game code does not resolve to a live record."""

    status_code = HTTPStatus.NOT_FOUND
    kind = "not_found"


class Conflict(MatchError):
    """The guarded write matched zero records: state moved under the caller.

    Expected under polling. Callers re-read on their next tick instead of retrying blindly.
    """

    status_code = HTTPStatus.CONFLICT
    kind = "conflict"


class Expired(MatchError):
    """The join window of a waiting lobby has passed."""

    status_code = HTTPStatus.CONFLICT
    kind = "expired"


class ValidationFailed(MatchError):
    """Missing or malformed required fields."""

    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    kind = "validation"


_BY_KIND: dict[str, type[MatchError]] = {
    cls.kind: cls for cls in (Unauthorized, Forbidden, NotFound, Conflict, Expired, ValidationFailed)
}

_BY_STATUS: dict[int, type[MatchError]] = {
    HTTPStatus.UNAUTHORIZED: Unauthorized,
    HTTPStatus.FORBIDDEN: Forbidden,
    HTTPStatus.NOT_FOUND: NotFound,
    HTTPStatus.CONFLICT: Conflict,
    HTTPStatus.UNPROCESSABLE_ENTITY: ValidationFailed,
}


def error_from_response(status_code: int, body: object) -> MatchError:
    """Rebuild a MatchError from an error response status and JSON body.

    The ``error`` kind in the body wins over the status code, so ``expired``
    and ``conflict`` (both 409) stay distinguishable.
    """
    kind = body.get("error") if isinstance(body, dict) else None
    message = body.get("message") if isinstance(body, dict) else None
    cls = _BY_KIND.get(kind) if isinstance(kind, str) else None
    if cls is None:
        cls = _BY_STATUS.get(status_code, MatchError)
    return cls(message if isinstance(message, str) else f"HTTP {status_code}")

"""Request parsing and response helpers shared by the JSON handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.responses import JSONResponse

from shared.errors import ValidationFailed

if TYPE_CHECKING:
    from collections.abc import Mapping

    from starlette.requests import Request

M = TypeVar("M", bound=BaseModel)


def describe_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into one readable line: ``field: message; ...``."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "body"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def validate_as(model_cls: type[M], data: Mapping[str, object]) -> M:
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(describe_validation_error(e)) from e


async def read_body(request: Request, model_cls: type[M]) -> M:
    """Parse and validate a JSON object body, raising ValidationFailed on any problem."""
    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationFailed("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise ValidationFailed("JSON body must be an object")
    return validate_as(model_cls, body)


def model_response(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(model.model_dump(mode="json"), status_code=status_code)

"""Shared validation helpers for settings and user-supplied identifiers."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

from shared.dal.models import GAME_CODE_LENGTH

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

GAME_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
_GAME_CODE_PATTERN = re.compile(rf"^[A-Z0-9]{{{GAME_CODE_LENGTH}}}$")


def normalize_game_code(value: str) -> str:
    """Uppercase and strip a user-typed game code. Raises ValueError if malformed."""
    code = value.strip().upper()
    if not _GAME_CODE_PATTERN.match(code):
        raise ValueError(f"Game code must be {GAME_CODE_LENGTH} letters or digits")
    return code


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a string list from an environment variable or config value.

    Accepts a list of strings, a JSON array string ('["a","b"]')
    or a comma-separated string ('a,b').
    Raises ValueError for blank input or malformed JSON; empty lists only pass
    with allow_empty.
    """
    if isinstance(value, list):
        if not allow_empty and not value:
            raise ValueError("String list value must not be empty")
        return value

    stripped = value.strip()
    if not stripped:
        raise ValueError("String list value must not be empty")

    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            raise ValueError("JSON value must be an array of strings")
        result = parsed
    else:
        result = [part.strip() for part in stripped.split(",") if part.strip()]

    if not allow_empty and not result:
        raise ValueError("String list value must not be empty")
    return result


_STRING_LIST_FIELDS = {"cors_origins"}


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that hands string-list fields to validators as raw strings.

    pydantic-settings JSON-decodes list-typed env values before validators run,
    which would reject the CSV form accepted by parse_string_list.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)

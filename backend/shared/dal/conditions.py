"""Predicate values for guarded conditional writes.

A guard is a mapping of column name to expected value. Plain values mean
equality and ``None`` means the column must be NULL. The wrappers below cover
the remaining comparisons the match state machine needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True)
class AnyOf:
    """Column value must be one of ``values``."""

    values: tuple[object, ...]

    def __init__(self, *values: object) -> None:
        if not values:
            raise ValueError("AnyOf requires at least one value")
        object.__setattr__(self, "values", values)


@dataclass(frozen=True)
class _IsSet:
    """Column must be non-NULL."""


IS_SET = _IsSet()


@dataclass(frozen=True)
class After:
    """Timestamp column must be strictly later than ``moment``."""

    moment: datetime


@dataclass(frozen=True)
class NotAfter:
    """Timestamp column must be at or before ``moment``."""

    moment: datetime


@dataclass(frozen=True)
class Before:
    """Timestamp column must be strictly earlier than ``moment``."""

    moment: datetime


Guard = dict[str, object]

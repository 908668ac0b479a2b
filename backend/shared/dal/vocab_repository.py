"""Abstract interface for the vocabulary content store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import CategorySummary, GameMode, VocabItem


class VocabRepository(ABC):
    """Read-only access to question items.

    ``subcategory == 0`` selects every subcategory of the category.
    Sentence mode only returns items that carry both sentences.
    """

    @abstractmethod
    async def get_items(self, category: str, subcategory: int, mode: GameMode) -> list[VocabItem]: ...

    @abstractmethod
    async def list_categories(self) -> list[CategorySummary]: ...

    @abstractmethod
    async def add_items(self, items: list[VocabItem]) -> int: ...

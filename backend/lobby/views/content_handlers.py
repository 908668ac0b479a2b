"""Vocabulary content endpoints used by the match runner."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from lobby.matches.types import QuestionsQuery
from lobby.views.common import validate_as

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from shared.dal.vocab_repository import VocabRepository


async def list_categories(request: Request) -> Response:
    """GET /api/content/categories"""
    vocab_repo: VocabRepository = request.app.state.vocab_repo
    categories = await vocab_repo.list_categories()
    return JSONResponse({"categories": [c.model_dump(mode="json") for c in categories]})


async def list_questions(request: Request) -> Response:
    """GET /api/content/questions?category=...&subcategory=...&mode=..."""
    vocab_repo: VocabRepository = request.app.state.vocab_repo
    query = validate_as(QuestionsQuery, dict(request.query_params))
    items = await vocab_repo.get_items(query.category, query.subcategory, query.mode)
    return JSONResponse({"items": [item.model_dump(mode="json") for item in items]})

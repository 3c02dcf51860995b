"""
Catalog Routes: home page.

- GET /catalog/ → entity counts (books, copies, available copies, authors, genres)

Page titles are HTML-escaped text, like every stored value.
A store failure while counting is shown on the page instead of the
error page, so the home page stays reachable.
"""

import logging

from fastapi import APIRouter, Request
from starlette.responses import Response

from src.app.routes.common import get_store
from src.app.services.validate import escape_html
from src.app.services.views import render
from src.core.fanout import fetch_all
from src.domain.constants import AUTHORS, BOOK_INSTANCES, BOOKS, GENRES, STATUS_AVAILABLE
from src.domain.errors import StoreError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def index(request: Request) -> Response:
    """Catalog home."""
    store = get_store(request)
    config = request.app.state.config or {}
    title = config.get("catalog", {}).get("title", "Local Library")

    data: dict[str, int] = {}
    error: StoreError | None = None
    try:
        data = await fetch_all(
            book_count=store.count_documents(BOOKS),
            book_instance_count=store.count_documents(BOOK_INSTANCES),
            book_instance_available_count=store.count_documents(
                BOOK_INSTANCES, {"status": STATUS_AVAILABLE}
            ),
            author_count=store.count_documents(AUTHORS),
            genre_count=store.count_documents(GENRES),
        )
    except StoreError as e:
        logger.error(f"Failed to count catalog documents: {e}", exc_info=True)
        error = e

    return render(request, "index", {
        "title": escape_html(f"{title} Home"),
        "data": data,
        "error": error,
    })

"""
Genre Routes: genre controller.

- GET  /catalog/genres               → list
- GET  /catalog/genre/create         → create form
- POST /catalog/genre/create         → validate → existing name? redirect : save
- GET  /catalog/genre/{id}           → detail (genre + books)
- GET  /catalog/genre/{id}/delete    → delete confirmation (lists books)
- POST /catalog/genre/{id}/delete    → refuse while books use it, else delete
- GET  /catalog/genre/{id}/update    → update form
- POST /catalog/genre/{id}/update    → validate → update → redirect

Genre names are unique by value: checked by lookup before every write.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import Response

from src.app.routes.common import get_store
from src.app.services.validate import REQUIRED, FieldError, FieldRule, ValidationResult, run_pipeline
from src.app.services.views import redirect, render
from src.core.fanout import fetch_all
from src.core.store import DocumentStore
from src.domain.constants import BOOKS, GENRE_LIST_URL, GENRES
from src.domain.errors import NotFoundError
from src.domain.schemas import Book, Genre

logger = logging.getLogger(__name__)

router = APIRouter()

GENRE_RULES = [
    FieldRule("name", REQUIRED, "Genre name required"),
]

DUPLICATE_NAME_MESSAGE = "Another genre already has this name"


def form_context(
    title: str, genre: Genre | None, validation: ValidationResult | None = None
) -> dict[str, Any]:
    return {
        "title": title,
        "genre": genre,
        "errors": validation.to_list() if validation else [],
    }


async def fetch_genre_with_books(store: DocumentStore, genre_id: str) -> dict[str, Any]:
    return await fetch_all(
        genre=store.find_by_id(GENRES, genre_id),
        genre_books=store.find(BOOKS, {"genre": genre_id}, projection=["title", "summary"])
        .sort("title"),
    )


# =============================================================================
# List / Detail
# =============================================================================

@router.get("/genres")
async def genre_list(request: Request) -> Response:
    docs = await get_store(request).find(GENRES).sort("name")

    return render(request, "genre_list", {
        "title": "Genre List",
        "genre_list": [Genre.from_document(d) for d in docs],
    })


@router.get("/genre/create")
async def genre_create_get(request: Request) -> Response:
    return render(request, "genre_form", form_context("Create Genre", None))


@router.post("/genre/create")
async def genre_create_post(request: Request) -> Response:
    """
    Create a genre.

    A genre with exactly the same name already stored → redirect to it,
    nothing saved.
    """
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, GENRE_RULES)
    genre = Genre(name=validation.values.get("name") or "")

    if validation.has_errors:
        return render(request, "genre_form", form_context("Create Genre", genre, validation))

    found = await store.find_one(GENRES, {"name": genre.name})
    if found is not None:
        existing = Genre.from_document(found)
        logger.info(f"Genre exists, not created: id={existing.id} name={existing.name!r}")
        return redirect(existing.url)

    saved = Genre.from_document(await store.save(GENRES, genre.to_document()))
    logger.info(f"Genre created: id={saved.id} name={saved.name!r}")
    return redirect(saved.url)


@router.get("/genre/{genre_id}")
async def genre_detail(request: Request, genre_id: str) -> Response:
    """Genre with the books using it. Missing genre → 404."""
    results = await fetch_genre_with_books(get_store(request), genre_id)

    if results["genre"] is None:
        raise NotFoundError("Genre not found", collection=GENRES, id=genre_id)

    return render(request, "genre_detail", {
        "title": "Genre Detail",
        "genre": Genre.from_document(results["genre"]),
        "genre_books": [Book.from_document(d) for d in results["genre_books"]],
    })


# =============================================================================
# Delete
# =============================================================================

@router.get("/genre/{genre_id}/delete")
async def genre_delete_get(request: Request, genre_id: str) -> Response:
    results = await fetch_genre_with_books(get_store(request), genre_id)

    if results["genre"] is None:
        return redirect(GENRE_LIST_URL)

    return render(request, "genre_delete", {
        "title": "Delete Genre",
        "genre": Genre.from_document(results["genre"]),
        "genre_books": [Book.from_document(d) for d in results["genre_books"]],
    })


@router.post("/genre/{genre_id}/delete")
async def genre_delete_post(request: Request, genre_id: str) -> Response:
    """Delete a genre; refused while books still use it."""
    store = get_store(request)
    results = await fetch_genre_with_books(store, genre_id)

    if results["genre"] is None:
        return redirect(GENRE_LIST_URL)

    if results["genre_books"]:
        logger.warning(
            f"Genre delete refused: id={genre_id} books={len(results['genre_books'])}"
        )
        return render(request, "genre_delete", {
            "title": "Delete Genre",
            "genre": Genre.from_document(results["genre"]),
            "genre_books": [Book.from_document(d) for d in results["genre_books"]],
            "message": "Remove this genre from the following books before deleting it.",
        })

    await store.find_by_id_and_delete(GENRES, genre_id)
    logger.info(f"Genre deleted: id={genre_id}")
    return redirect(GENRE_LIST_URL)


# =============================================================================
# Update
# =============================================================================

@router.get("/genre/{genre_id}/update")
async def genre_update_get(request: Request, genre_id: str) -> Response:
    doc = await get_store(request).find_by_id(GENRES, genre_id)

    if doc is None:
        return redirect(GENRE_LIST_URL)

    return render(request, "genre_form", form_context("Update Genre", Genre.from_document(doc)))


@router.post("/genre/{genre_id}/update")
async def genre_update_post(request: Request, genre_id: str) -> Response:
    """
    Rename a genre.

    Renaming onto a name held by a different genre → form re-rendered
    with an error.
    """
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, GENRE_RULES)
    genre = Genre(id=genre_id, name=validation.values.get("name") or "")

    if await store.find_by_id(GENRES, genre_id, projection=["id"]) is None:
        return redirect(GENRE_LIST_URL)

    if not validation.has_errors:
        found = await store.find_one(GENRES, {"name": genre.name})
        if found is not None and found.get("id") != genre_id:
            validation.errors.append(FieldError("name", DUPLICATE_NAME_MESSAGE, genre.name))

    if validation.has_errors:
        return render(request, "genre_form", form_context("Update Genre", genre, validation))

    updated = await store.find_by_id_and_update(GENRES, genre_id, genre.to_document())
    if updated is None:
        return redirect(GENRE_LIST_URL)

    logger.info(f"Genre updated: id={genre_id} name={genre.name!r}")
    return redirect(Genre.from_document(updated).url)

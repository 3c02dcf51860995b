"""
Author Routes: author controller.

- GET  /catalog/authors               → list
- GET  /catalog/author/create         → create form
- POST /catalog/author/create         → validate → save → redirect
- GET  /catalog/author/{id}           → detail (author + books)
- GET  /catalog/author/{id}/delete    → delete confirmation (lists books)
- POST /catalog/author/{id}/delete    → refuse while books exist, else delete
- GET  /catalog/author/{id}/update    → update form
- POST /catalog/author/{id}/update    → validate → update → redirect
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import Response

from src.app.routes.common import get_store
from src.app.services.validate import (
    ALPHANUMERIC,
    ISO_DATE,
    OPTIONAL,
    REQUIRED,
    FieldRule,
    ValidationResult,
    run_pipeline,
)
from src.app.services.views import redirect, render
from src.core.fanout import fetch_all
from src.core.store import DocumentStore
from src.domain.constants import AUTHOR_LIST_URL, AUTHORS, BOOKS
from src.domain.errors import NotFoundError
from src.domain.schemas import Author, Book

logger = logging.getLogger(__name__)

router = APIRouter()

AUTHOR_RULES = [
    FieldRule("first_name", REQUIRED, "First name must be specified."),
    FieldRule("first_name", ALPHANUMERIC, "First name has non-alphanumeric characters."),
    FieldRule("family_name", REQUIRED, "Family name must be specified."),
    FieldRule("family_name", ALPHANUMERIC, "Family name has non-alphanumeric characters."),
    FieldRule("date_of_birth", OPTIONAL),
    FieldRule("date_of_birth", ISO_DATE, "Invalid date of birth"),
    FieldRule("date_of_death", OPTIONAL),
    FieldRule("date_of_death", ISO_DATE, "Invalid date of death"),
]


def author_from_values(values: dict[str, Any], author_id: str | None = None) -> Author:
    """Validated form values -> Author (dates may stay as entered text on errors)."""
    return Author(
        id=author_id,
        first_name=values.get("first_name") or "",
        family_name=values.get("family_name") or "",
        date_of_birth=values.get("date_of_birth"),
        date_of_death=values.get("date_of_death"),
    )


def form_context(
    title: str, author: Author | None, validation: ValidationResult | None = None
) -> dict[str, Any]:
    return {
        "title": title,
        "author": author,
        "errors": validation.to_list() if validation else [],
    }


async def fetch_author_with_books(store: DocumentStore, author_id: str) -> dict[str, Any]:
    return await fetch_all(
        author=store.find_by_id(AUTHORS, author_id),
        author_books=store.find(BOOKS, {"author": author_id}, projection=["title", "summary"])
        .sort("title"),
    )


# =============================================================================
# List / Detail
# =============================================================================

@router.get("/authors")
async def author_list(request: Request) -> Response:
    store = get_store(request)
    docs = await store.find(AUTHORS).sort("family_name").sort("first_name")

    return render(request, "author_list", {
        "title": "Author List",
        "author_list": [Author.from_document(d) for d in docs],
    })


@router.get("/author/create")
async def author_create_get(request: Request) -> Response:
    return render(request, "author_form", form_context("Create Author", None))


@router.post("/author/create")
async def author_create_post(request: Request) -> Response:
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, AUTHOR_RULES)
    author = author_from_values(validation.values)

    if validation.has_errors:
        return render(request, "author_form", form_context("Create Author", author, validation))

    saved = Author.from_document(await store.save(AUTHORS, author.to_document()))
    logger.info(f"Author created: id={saved.id} name={saved.name!r}")
    return redirect(saved.url)


@router.get("/author/{author_id}")
async def author_detail(request: Request, author_id: str) -> Response:
    """Author with their books. Missing author → 404."""
    results = await fetch_author_with_books(get_store(request), author_id)

    if results["author"] is None:
        raise NotFoundError("Author not found", collection=AUTHORS, id=author_id)

    return render(request, "author_detail", {
        "title": "Author Detail",
        "author": Author.from_document(results["author"]),
        "author_books": [Book.from_document(d) for d in results["author_books"]],
    })


# =============================================================================
# Delete
# =============================================================================

@router.get("/author/{author_id}/delete")
async def author_delete_get(request: Request, author_id: str) -> Response:
    results = await fetch_author_with_books(get_store(request), author_id)

    if results["author"] is None:
        return redirect(AUTHOR_LIST_URL)

    return render(request, "author_delete", {
        "title": "Delete Author",
        "author": Author.from_document(results["author"]),
        "author_books": [Book.from_document(d) for d in results["author_books"]],
    })


@router.post("/author/{author_id}/delete")
async def author_delete_post(request: Request, author_id: str) -> Response:
    """Delete an author; refused while books still reference them."""
    store = get_store(request)
    results = await fetch_author_with_books(store, author_id)

    if results["author"] is None:
        return redirect(AUTHOR_LIST_URL)

    if results["author_books"]:
        logger.warning(
            f"Author delete refused: id={author_id} books={len(results['author_books'])}"
        )
        return render(request, "author_delete", {
            "title": "Delete Author",
            "author": Author.from_document(results["author"]),
            "author_books": [Book.from_document(d) for d in results["author_books"]],
            "message": "Delete the following books before deleting this author.",
        })

    await store.find_by_id_and_delete(AUTHORS, author_id)
    logger.info(f"Author deleted: id={author_id}")
    return redirect(AUTHOR_LIST_URL)


# =============================================================================
# Update
# =============================================================================

@router.get("/author/{author_id}/update")
async def author_update_get(request: Request, author_id: str) -> Response:
    doc = await get_store(request).find_by_id(AUTHORS, author_id)

    if doc is None:
        return redirect(AUTHOR_LIST_URL)

    return render(request, "author_form", form_context("Update Author", Author.from_document(doc)))


@router.post("/author/{author_id}/update")
async def author_update_post(request: Request, author_id: str) -> Response:
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, AUTHOR_RULES)
    author = author_from_values(validation.values, author_id=author_id)

    if validation.has_errors:
        if await store.find_by_id(AUTHORS, author_id, projection=["id"]) is None:
            return redirect(AUTHOR_LIST_URL)
        return render(request, "author_form", form_context("Update Author", author, validation))

    updated = await store.find_by_id_and_update(AUTHORS, author_id, author.to_document())
    if updated is None:
        return redirect(AUTHOR_LIST_URL)

    logger.info(f"Author updated: id={author_id}")
    return redirect(Author.from_document(updated).url)

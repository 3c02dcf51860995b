"""
Book Routes: book controller.

- GET  /catalog/books               → list
- GET  /catalog/book/create         → create form
- POST /catalog/book/create         → validate → save → redirect
- GET  /catalog/book/{id}           → detail (book + copies)
- GET  /catalog/book/{id}/delete    → delete confirmation (lists copies)
- POST /catalog/book/{id}/delete    → refuse while copies exist, else delete
- GET  /catalog/book/{id}/update    → update form
- POST /catalog/book/{id}/update    → validate → update → redirect
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import Response

from src.app.routes.common import get_store
from src.app.services.forms import annotate_options
from src.app.services.validate import MANY, REQUIRED, FieldRule, ValidationResult, run_pipeline
from src.app.services.views import redirect, render
from src.core.fanout import fetch_all
from src.core.store import DocumentStore
from src.domain.constants import AUTHORS, BOOK_INSTANCES, BOOK_LIST_URL, BOOKS, GENRES
from src.domain.errors import NotFoundError
from src.domain.schemas import Author, Book, BookInstance, Genre

logger = logging.getLogger(__name__)

router = APIRouter()

BOOK_RULES = [
    FieldRule("title", REQUIRED, "Title must not be empty."),
    FieldRule("author", REQUIRED, "Author must not be empty."),
    FieldRule("summary", REQUIRED, "Summary must not be empty."),
    FieldRule("isbn", REQUIRED, "ISBN must not be empty."),
    FieldRule("genre", MANY),
]


# =============================================================================
# Helpers
# =============================================================================

def book_from_values(values: dict[str, Any], book_id: str | None = None) -> Book:
    """Validated form values -> Book."""
    return Book(
        id=book_id,
        title=values.get("title") or "",
        author=values.get("author") or None,
        summary=values.get("summary") or "",
        isbn=values.get("isbn") or "",
        genre=list(values.get("genre") or []),
    )


async def fetch_form_choices(store: DocumentStore) -> tuple[list[Author], list[Genre]]:
    """All authors and genres for the book form, fetched concurrently."""
    results = await fetch_all(
        authors=store.find(AUTHORS).sort("family_name").sort("first_name"),
        genres=store.find(GENRES).sort("name"),
    )
    authors = [Author.from_document(d) for d in results["authors"]]
    genres = [Genre.from_document(d) for d in results["genres"]]
    return authors, genres


def form_context(
    title: str,
    book: Book | None,
    authors: list[Author],
    genres: list[Genre],
    validation: ValidationResult | None = None,
) -> dict[str, Any]:
    """Context for the book_form view."""
    return {
        "title": title,
        "book": book,
        "authors": annotate_options(
            authors, [book.author_id if book else None], label=lambda a: a.name
        ),
        "genres": annotate_options(
            genres, book.genre_ids if book else [], label=lambda g: g.name
        ),
        "errors": validation.to_list() if validation else [],
    }


async def fetch_book_with_copies(store: DocumentStore, book_id: str) -> dict[str, Any]:
    """Book (raw document) + its copies, fetched concurrently."""
    return await fetch_all(
        book=store.find_by_id(BOOKS, book_id).populate("author", AUTHORS),
        book_instances=store.find(BOOK_INSTANCES, {"book": book_id}),
    )


# =============================================================================
# List / Detail
# =============================================================================

@router.get("/books")
async def book_list(request: Request) -> Response:
    """All books (title + author), sorted by title."""
    store = get_store(request)

    docs = await (
        store.find(BOOKS, projection=["title", "author"])
        .sort("title")
        .populate("author", AUTHORS)
    )

    return render(request, "book_list", {
        "title": "Book List",
        "book_list": [Book.from_document(d) for d in docs],
    })


@router.get("/book/create")
async def book_create_get(request: Request) -> Response:
    """Empty book form."""
    authors, genres = await fetch_form_choices(get_store(request))
    return render(request, "book_form", form_context("Create Book", None, authors, genres))


@router.post("/book/create")
async def book_create_post(request: Request) -> Response:
    """
    Create a book.

    Validation failure → form re-rendered with entered values and errors.
    Success → saved, redirect to the new book.
    """
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, BOOK_RULES)
    book = book_from_values(validation.values)

    if validation.has_errors:
        authors, genres = await fetch_form_choices(store)
        return render(
            request,
            "book_form",
            form_context("Create Book", book, authors, genres, validation),
        )

    saved = Book.from_document(await store.save(BOOKS, book.to_document()))
    logger.info(f"Book created: id={saved.id} title={saved.title!r}")
    return redirect(saved.url)


@router.get("/book/{book_id}")
async def book_detail(request: Request, book_id: str) -> Response:
    """Book with author, genres and copies. Missing book → 404."""
    store = get_store(request)

    results = await fetch_all(
        book=store.find_by_id(BOOKS, book_id)
        .populate("author", AUTHORS)
        .populate("genre", GENRES),
        book_instances=store.find(BOOK_INSTANCES, {"book": book_id}),
    )

    if results["book"] is None:
        raise NotFoundError("Book not found", collection=BOOKS, id=book_id)

    book = Book.from_document(results["book"])
    return render(request, "book_detail", {
        "title": book.title,
        "book": book,
        "book_instances": [BookInstance.from_document(d) for d in results["book_instances"]],
    })


# =============================================================================
# Delete
# =============================================================================

@router.get("/book/{book_id}/delete")
async def book_delete_get(request: Request, book_id: str) -> Response:
    """Delete confirmation. Missing book → back to the list."""
    results = await fetch_book_with_copies(get_store(request), book_id)

    if results["book"] is None:
        return redirect(BOOK_LIST_URL)

    return render(request, "book_delete", {
        "title": "Delete Book",
        "book": Book.from_document(results["book"]),
        "book_instances": [BookInstance.from_document(d) for d in results["book_instances"]],
    })


@router.post("/book/{book_id}/delete")
async def book_delete_post(request: Request, book_id: str) -> Response:
    """
    Delete a book.

    Copies still referencing the book → refused, confirmation re-rendered.
    """
    store = get_store(request)
    results = await fetch_book_with_copies(store, book_id)

    if results["book"] is None:
        return redirect(BOOK_LIST_URL)

    if results["book_instances"]:
        logger.warning(
            f"Book delete refused: id={book_id} "
            f"copies={len(results['book_instances'])}"
        )
        return render(request, "book_delete", {
            "title": "Delete Book",
            "book": Book.from_document(results["book"]),
            "book_instances": [BookInstance.from_document(d) for d in results["book_instances"]],
            "message": "Delete the following copies before deleting this book.",
        })

    await store.find_by_id_and_delete(BOOKS, book_id)
    logger.info(f"Book deleted: id={book_id}")
    return redirect(BOOK_LIST_URL)


# =============================================================================
# Update
# =============================================================================

@router.get("/book/{book_id}/update")
async def book_update_get(request: Request, book_id: str) -> Response:
    """Update form pre-populated from the stored book."""
    store = get_store(request)

    results = await fetch_all(
        book=store.find_by_id(BOOKS, book_id),
        choices=fetch_form_choices(store),
    )

    if results["book"] is None:
        return redirect(BOOK_LIST_URL)

    authors, genres = results["choices"]
    book = Book.from_document(results["book"])
    return render(request, "book_form", form_context("Update Book", book, authors, genres))


@router.post("/book/{book_id}/update")
async def book_update_post(request: Request, book_id: str) -> Response:
    """
    Update a book (same id).

    Missing book → redirect to the list (checked before any re-render).
    Validation failure → form re-rendered. Success → redirect to the book.
    """
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, BOOK_RULES)
    book = book_from_values(validation.values, book_id=book_id)

    if validation.has_errors:
        results = await fetch_all(
            existing=store.find_by_id(BOOKS, book_id, projection=["id"]),
            choices=fetch_form_choices(store),
        )
        if results["existing"] is None:
            return redirect(BOOK_LIST_URL)

        authors, genres = results["choices"]
        return render(
            request,
            "book_form",
            form_context("Update Book", book, authors, genres, validation),
        )

    updated = await store.find_by_id_and_update(BOOKS, book_id, book.to_document())
    if updated is None:
        return redirect(BOOK_LIST_URL)

    logger.info(f"Book updated: id={book_id}")
    return redirect(Book.from_document(updated).url)

"""
BookInstance Routes: book copy controller.

- GET  /catalog/bookinstances               → list
- GET  /catalog/bookinstance/create         → create form
- POST /catalog/bookinstance/create         → validate → save → redirect
- GET  /catalog/bookinstance/{id}           → detail
- GET  /catalog/bookinstance/{id}/delete    → delete confirmation
- POST /catalog/bookinstance/{id}/delete    → delete (no dependents)
- GET  /catalog/bookinstance/{id}/update    → update form
- POST /catalog/bookinstance/{id}/update    → validate → update → redirect
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import Response

from src.app.routes.common import get_store
from src.app.services.forms import annotate_options
from src.app.services.validate import (
    ISO_DATE,
    ONE_OF,
    OPTIONAL,
    REQUIRED,
    FieldRule,
    ValidationResult,
    run_pipeline,
)
from src.app.services.views import redirect, render
from src.core.fanout import fetch_all
from src.core.store import DocumentStore
from src.domain.constants import (
    BOOK_INSTANCE_LIST_URL,
    BOOK_INSTANCE_STATUSES,
    BOOK_INSTANCES,
    BOOKS,
    DEFAULT_BOOK_INSTANCE_STATUS,
)
from src.domain.errors import NotFoundError
from src.domain.schemas import Book, BookInstance

logger = logging.getLogger(__name__)

router = APIRouter()

BOOK_INSTANCE_RULES = [
    FieldRule("book", REQUIRED, "Book must be specified"),
    FieldRule("imprint", REQUIRED, "Imprint must be specified"),
    FieldRule("status", OPTIONAL),
    FieldRule("status", ONE_OF, "Invalid status", choices=BOOK_INSTANCE_STATUSES),
    FieldRule("due_back", OPTIONAL),
    FieldRule("due_back", ISO_DATE, "Invalid date"),
]


def instance_from_values(
    values: dict[str, Any], instance_id: str | None = None
) -> BookInstance:
    """Validated form values -> BookInstance (missing status → default)."""
    return BookInstance(
        id=instance_id,
        book=values.get("book") or None,
        imprint=values.get("imprint") or "",
        status=values.get("status") or DEFAULT_BOOK_INSTANCE_STATUS,
        due_back=values.get("due_back"),
    )


async def fetch_book_choices(store: DocumentStore) -> list[Book]:
    docs = await store.find(BOOKS, projection=["title"]).sort("title")
    return [Book.from_document(d) for d in docs]


def form_context(
    title: str,
    instance: BookInstance | None,
    books: list[Book],
    validation: ValidationResult | None = None,
) -> dict[str, Any]:
    return {
        "title": title,
        "bookinstance": instance,
        "books": annotate_options(
            books, [instance.book_id if instance else None], label=lambda b: b.title
        ),
        "statuses": BOOK_INSTANCE_STATUSES,
        "errors": validation.to_list() if validation else [],
    }


# =============================================================================
# List / Detail
# =============================================================================

@router.get("/bookinstances")
async def bookinstance_list(request: Request) -> Response:
    docs = await get_store(request).find(BOOK_INSTANCES).populate("book", BOOKS)

    return render(request, "bookinstance_list", {
        "title": "Book Instance List",
        "bookinstance_list": [BookInstance.from_document(d) for d in docs],
    })


@router.get("/bookinstance/create")
async def bookinstance_create_get(request: Request) -> Response:
    books = await fetch_book_choices(get_store(request))
    return render(request, "bookinstance_form", form_context("Create BookInstance", None, books))


@router.post("/bookinstance/create")
async def bookinstance_create_post(request: Request) -> Response:
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, BOOK_INSTANCE_RULES)
    instance = instance_from_values(validation.values)

    if validation.has_errors:
        books = await fetch_book_choices(store)
        return render(
            request,
            "bookinstance_form",
            form_context("Create BookInstance", instance, books, validation),
        )

    saved = BookInstance.from_document(
        await store.save(BOOK_INSTANCES, instance.to_document())
    )
    logger.info(f"BookInstance created: id={saved.id} book={saved.book_id}")
    return redirect(saved.url)


@router.get("/bookinstance/{instance_id}")
async def bookinstance_detail(request: Request, instance_id: str) -> Response:
    """Copy with its book. Missing copy → 404."""
    doc = await (
        get_store(request)
        .find_by_id(BOOK_INSTANCES, instance_id)
        .populate("book", BOOKS)
    )

    if doc is None:
        raise NotFoundError("Book copy not found", collection=BOOK_INSTANCES, id=instance_id)

    instance = BookInstance.from_document(doc)
    book_title = instance.book.title if isinstance(instance.book, Book) else ""
    return render(request, "bookinstance_detail", {
        "title": f"Copy: {book_title}",
        "bookinstance": instance,
    })


# =============================================================================
# Delete
# =============================================================================

@router.get("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_get(request: Request, instance_id: str) -> Response:
    doc = await (
        get_store(request)
        .find_by_id(BOOK_INSTANCES, instance_id)
        .populate("book", BOOKS)
    )

    if doc is None:
        return redirect(BOOK_INSTANCE_LIST_URL)

    return render(request, "bookinstance_delete", {
        "title": "Delete BookInstance",
        "bookinstance": BookInstance.from_document(doc),
    })


@router.post("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_post(request: Request, instance_id: str) -> Response:
    store = get_store(request)
    doc = await store.find_by_id(BOOK_INSTANCES, instance_id)

    if doc is None:
        return redirect(BOOK_INSTANCE_LIST_URL)

    await store.find_by_id_and_delete(BOOK_INSTANCES, instance_id)
    logger.info(f"BookInstance deleted: id={instance_id}")
    return redirect(BOOK_INSTANCE_LIST_URL)


# =============================================================================
# Update
# =============================================================================

@router.get("/bookinstance/{instance_id}/update")
async def bookinstance_update_get(request: Request, instance_id: str) -> Response:
    store = get_store(request)

    results = await fetch_all(
        bookinstance=store.find_by_id(BOOK_INSTANCES, instance_id),
        books=fetch_book_choices(store),
    )

    if results["bookinstance"] is None:
        return redirect(BOOK_INSTANCE_LIST_URL)

    instance = BookInstance.from_document(results["bookinstance"])
    return render(
        request,
        "bookinstance_form",
        form_context("Update BookInstance", instance, results["books"]),
    )


@router.post("/bookinstance/{instance_id}/update")
async def bookinstance_update_post(request: Request, instance_id: str) -> Response:
    store = get_store(request)
    form = await request.form()

    validation = run_pipeline(form, BOOK_INSTANCE_RULES)
    instance = instance_from_values(validation.values, instance_id=instance_id)

    if validation.has_errors:
        results = await fetch_all(
            existing=store.find_by_id(BOOK_INSTANCES, instance_id, projection=["id"]),
            books=fetch_book_choices(store),
        )
        if results["existing"] is None:
            return redirect(BOOK_INSTANCE_LIST_URL)

        books = results["books"]
        return render(
            request,
            "bookinstance_form",
            form_context("Update BookInstance", instance, books, validation),
        )

    updated = await store.find_by_id_and_update(
        BOOK_INSTANCES, instance_id, instance.to_document()
    )
    if updated is None:
        return redirect(BOOK_INSTANCE_LIST_URL)

    logger.info(f"BookInstance updated: id={instance_id}")
    return redirect(BookInstance.from_document(updated).url)

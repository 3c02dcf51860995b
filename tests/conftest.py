"""
Pytest fixtures for the catalog tests.

Layout:
- seeded in-memory store (authors, genres, books, copies)
- app built with the injected store + TestClient
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.app.main import create_app
from src.core.store import MemoryDocumentStore
from src.domain.constants import AUTHORS, BOOK_INSTANCES, BOOKS, GENRES

# =============================================================================
# Seed Data
# =============================================================================

SEED_AUTHORS = [
    {
        "id": "a1",
        "first_name": "Frank",
        "family_name": "Herbert",
        "date_of_birth": "1920-10-08",
        "date_of_death": "1986-02-11",
    },
    {
        "id": "a2",
        "first_name": "Patrick",
        "family_name": "Rothfuss",
        "date_of_birth": "1973-06-06",
        "date_of_death": None,
    },
    {
        "id": "a3",
        "first_name": "Isaac",
        "family_name": "Asimov",
        "date_of_birth": None,
        "date_of_death": None,
    },
]

SEED_GENRES = [
    {"id": "g1", "name": "Fantasy"},
    {"id": "g2", "name": "Science Fiction"},
    {"id": "g3", "name": "Poetry"},
]

SEED_BOOKS = [
    {
        "id": "b1",
        "title": "Dune",
        "author": "a1",
        "summary": "Spice and sandworms.",
        "isbn": "9780441172719",
        "genre": ["g2"],
    },
    {
        "id": "b2",
        "title": "The Name of the Wind",
        "author": "a2",
        "summary": "Kvothe tells his story.",
        "isbn": "9780756404741",
        "genre": ["g1", "g2"],
    },
    {
        "id": "b3",
        "title": "The Wise Man's Fear",
        "author": "a2",
        "summary": "Day two.",
        "isbn": "9780756407919",
        "genre": ["g1"],
    },
]

SEED_BOOK_INSTANCES = [
    {"id": "i1", "book": "b1", "imprint": "Ace, 1990", "status": "Available", "due_back": None},
    {"id": "i2", "book": "b2", "imprint": "DAW, 2007", "status": "Loaned", "due_back": "2027-01-05"},
    {"id": "i3", "book": "b2", "imprint": "DAW, 2008", "status": "Maintenance", "due_back": None},
]


# =============================================================================
# Store / App Fixtures
# =============================================================================

@pytest.fixture
def store() -> MemoryDocumentStore:
    """Store seeded with 3 authors, 3 genres, 3 books and 3 copies."""
    return MemoryDocumentStore({
        AUTHORS: SEED_AUTHORS,
        GENRES: SEED_GENRES,
        BOOKS: SEED_BOOKS,
        BOOK_INSTANCES: SEED_BOOK_INSTANCES,
    })


@pytest.fixture
def test_config() -> dict:
    """Config for tests (memory backend)."""
    return {
        "store": {"backend": "memory"},
        "logging": {"level": "DEBUG"},
        "catalog": {"title": "Local Library"},
    }


@pytest.fixture
def app(test_config: dict, store: MemoryDocumentStore) -> FastAPI:
    """App with the seeded store injected."""
    return create_app(config=test_config, store=store)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client (redirects are not followed by the tests)."""
    return TestClient(app)


@pytest.fixture
def run() -> Callable[[Awaitable[Any]], Any]:
    """Await a store call from a sync test (queries are awaitable, not coroutines)."""
    def _run(aw: Awaitable[Any]) -> Any:
        async def _wait() -> Any:
            return await aw
        return asyncio.run(_wait())
    return _run

"""
Document Store: async CRUD + query + populate.

Contract consumed by the controllers:
- find_by_id / find_one on a missing id resolve to None (not an error)
- find returns a Query: chain .sort() and .populate(), then await it
- every operation may raise StoreError; nothing is retried here
- referential integrity is NOT enforced (no cascades)

Backends only implement two primitives (_read / _update); filtering,
projection, sorting and populate are shared.
"""

import copy
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator, Mapping, Sequence
from typing import Any, TypeVar

from src.core.ids import generate_document_id
from src.domain.constants import ASCENDING

T = TypeVar("T")

Document = dict[str, Any]


# =============================================================================
# Matching / Projection / Sorting
# =============================================================================

def matches(doc: Mapping[str, Any], filter: Mapping[str, Any] | None) -> bool:
    """
    Filter match.

    A document matches when, for every key, the stored value equals the
    filter value or the stored value is a list containing it.
    """
    if not filter:
        return True
    for key, expected in filter.items():
        stored = doc.get(key)
        if isinstance(stored, list) and not isinstance(expected, list):
            if expected not in stored:
                return False
        elif stored != expected:
            return False
    return True


def project(doc: Document, projection: Sequence[str] | None) -> Document:
    """Keep only the projected fields (id is always kept)."""
    if not projection:
        return doc
    keep = {"id", *projection}
    return {k: v for k, v in doc.items() if k in keep}


def sort_documents(docs: list[Document], field: str, direction: int) -> list[Document]:
    """
    Stable sort on one field.

    Missing values come first in both directions; only present values are
    reversed for a descending sort.
    """
    missing = [doc for doc in docs if doc.get(field) is None]
    present = [doc for doc in docs if doc.get(field) is not None]
    present.sort(key=lambda doc: doc[field], reverse=direction < 0)
    return missing + present


# =============================================================================
# Query
# =============================================================================

class Query:
    """
    Lazy query over one collection.

    Usage:
        books = await store.find("books", projection=["title", "author"]) \\
            .sort("title").populate("author", "authors")
    """

    def __init__(
        self,
        store: "DocumentStore",
        collection: str,
        filter: Mapping[str, Any] | None = None,
        projection: Sequence[str] | None = None,
        single: bool = False,
    ) -> None:
        self._store = store
        self._collection = collection
        self._filter = dict(filter or {})
        self._projection = list(projection) if projection else None
        self._single = single
        self._sorts: list[tuple[str, int]] = []
        self._populates: list[tuple[str, str]] = []

    def sort(self, field: str, direction: int = ASCENDING) -> "Query":
        """Add a sort key. Earlier calls take precedence."""
        self._sorts.append((field, direction))
        return self

    def populate(self, field: str, collection: str) -> "Query":
        """Replace the reference(s) in `field` with documents from `collection`."""
        self._populates.append((field, collection))
        return self

    def __await__(self) -> Generator[Any, None, Any]:
        return self.exec().__await__()

    async def exec(self) -> Any:
        docs = [
            project(doc, self._projection)
            for doc in await self._store._read(self._collection)
            if matches(doc, self._filter)
        ]

        # stable sort: apply the least significant key first
        for field, direction in reversed(self._sorts):
            docs = sort_documents(docs, field, direction)

        if self._single:
            docs = docs[:1]

        for field, collection in self._populates:
            docs = await self._store._populate(docs, field, collection)

        if self._single:
            return docs[0] if docs else None
        return docs


# =============================================================================
# Store Interface
# =============================================================================

class DocumentStore(ABC):
    """
    Abstract document store.

    Backends return copies: mutating a returned document never changes
    stored state.
    """

    @abstractmethod
    async def _read(self, collection: str) -> list[Document]:
        """Copies of every document in the collection."""

    @abstractmethod
    async def _update(
        self, collection: str, mutate: Callable[[list[Document]], T]
    ) -> T:
        """
        Read-modify-write a collection.

        `mutate` edits the document list in place and returns the result
        handed back to the caller. The backend persists the list afterwards.
        """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        projection: Sequence[str] | None = None,
    ) -> Query:
        return Query(self, collection, filter=filter, projection=projection)

    def find_one(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        projection: Sequence[str] | None = None,
    ) -> Query:
        return Query(self, collection, filter=filter, projection=projection, single=True)

    def find_by_id(
        self,
        collection: str,
        id: str,
        projection: Sequence[str] | None = None,
    ) -> Query:
        return Query(self, collection, filter={"id": id}, projection=projection, single=True)

    async def count_documents(
        self, collection: str, filter: Mapping[str, Any] | None = None
    ) -> int:
        return sum(1 for doc in await self._read(collection) if matches(doc, filter))

    async def _populate(
        self, docs: list[Document], field: str, collection: str
    ) -> list[Document]:
        if not docs:
            return docs

        by_id = {doc.get("id"): doc for doc in await self._read(collection)}

        for doc in docs:
            ref = doc.get(field)
            if isinstance(ref, list):
                doc[field] = [by_id[r] for r in ref if r in by_id]
            elif ref is not None:
                doc[field] = by_id.get(ref)
        return docs

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def save(self, collection: str, document: Mapping[str, Any]) -> Document:
        """
        Insert a document (or replace it when its id already exists).

        Returns:
            stored document, id assigned when absent
        """
        new_doc = copy.deepcopy(dict(document))
        if not new_doc.get("id"):
            new_doc["id"] = generate_document_id()

        def mutate(docs: list[Document]) -> Document:
            for i, doc in enumerate(docs):
                if doc.get("id") == new_doc["id"]:
                    docs[i] = new_doc
                    break
            else:
                docs.append(new_doc)
            return copy.deepcopy(new_doc)

        return await self._update(collection, mutate)

    async def find_by_id_and_update(
        self, collection: str, id: str, document: Mapping[str, Any]
    ) -> Document | None:
        """
        Replace the document with the given id.

        Returns:
            updated document, or None when no document has that id
        """
        new_doc = copy.deepcopy(dict(document))
        new_doc["id"] = id

        def mutate(docs: list[Document]) -> Document | None:
            for i, doc in enumerate(docs):
                if doc.get("id") == id:
                    docs[i] = new_doc
                    return copy.deepcopy(new_doc)
            return None

        return await self._update(collection, mutate)

    async def find_by_id_and_delete(self, collection: str, id: str) -> Document | None:
        """
        Delete the document with the given id.

        Returns:
            deleted document, or None when no document has that id
        """
        def mutate(docs: list[Document]) -> Document | None:
            for i, doc in enumerate(docs):
                if doc.get("id") == id:
                    return docs.pop(i)
            return None

        return await self._update(collection, mutate)


# =============================================================================
# In-Memory Backend
# =============================================================================

class MemoryDocumentStore(DocumentStore):
    """
    Process-local store (tests, demos).

    Args:
        data: initial collections, e.g. {"genres": [{"id": "g1", "name": "Poetry"}]}
    """

    def __init__(self, data: Mapping[str, list[Document]] | None = None) -> None:
        self._collections: dict[str, list[Document]] = {
            name: copy.deepcopy(list(docs)) for name, docs in (data or {}).items()
        }

    async def _read(self, collection: str) -> list[Document]:
        return copy.deepcopy(self._collections.get(collection, []))

    async def _update(
        self, collection: str, mutate: Callable[[list[Document]], T]
    ) -> T:
        docs = self._collections.setdefault(collection, [])
        return mutate(docs)

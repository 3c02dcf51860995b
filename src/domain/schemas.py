"""
Data schemas for the catalog.

Rules:
- Field names match the stored document keys and the form field names
- Reference fields hold an id, or the referenced entity once populated
- Dates are stored as ISO-8601 strings, held as datetime.date in memory
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from src.domain.constants import CATALOG_PREFIX, DEFAULT_BOOK_INSTANCE_STATUS


def _parse_date(value: Any) -> date | None:
    """Stored ISO string (or date) -> date."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _format_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def ref_id(value: Any) -> str | None:
    """
    Reference field value -> id.

    Accepts an id string, a populated entity, a populated document dict,
    or None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("id")
    return getattr(value, "id", None)


# =============================================================================
# Author
# =============================================================================

@dataclass
class Author:
    """Author document."""
    first_name: str
    family_name: str
    date_of_birth: date | None = None
    date_of_death: date | None = None
    id: str | None = None

    @property
    def name(self) -> str:
        """'family_name, first_name', empty when either part is missing."""
        if not self.first_name or not self.family_name:
            return ""
        return f"{self.family_name}, {self.first_name}"

    @property
    def lifespan(self) -> str:
        birth = _format_date(self.date_of_birth) or ""
        death = _format_date(self.date_of_death) or ""
        if not birth and not death:
            return ""
        return f"{birth} - {death}"

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/author/{self.id}"

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": _format_date(self.date_of_birth),
            "date_of_death": _format_date(self.date_of_death),
        }
        if self.id is not None:
            doc["id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Author":
        return cls(
            id=doc.get("id"),
            first_name=doc.get("first_name", ""),
            family_name=doc.get("family_name", ""),
            date_of_birth=_parse_date(doc.get("date_of_birth")),
            date_of_death=_parse_date(doc.get("date_of_death")),
        )


# =============================================================================
# Genre
# =============================================================================

@dataclass
class Genre:
    """Genre document. Name is unique by value (checked before insert)."""
    name: str
    id: str | None = None

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/genre/{self.id}"

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"name": self.name}
        if self.id is not None:
            doc["id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Genre":
        return cls(id=doc.get("id"), name=doc.get("name", ""))


# =============================================================================
# Book
# =============================================================================

@dataclass
class Book:
    """
    Book document.

    author: Author id, or Author once populated
    genre: list of Genre ids, or Genre objects once populated
    """
    title: str
    author: "str | Author | None"
    summary: str
    isbn: str
    genre: list[Any] = field(default_factory=list)
    id: str | None = None

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/book/{self.id}"

    @property
    def author_id(self) -> str | None:
        return ref_id(self.author)

    @property
    def genre_ids(self) -> list[str]:
        return [gid for gid in (ref_id(g) for g in self.genre) if gid]

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "title": self.title,
            "author": self.author_id,
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": self.genre_ids,
        }
        if self.id is not None:
            doc["id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Book":
        author = doc.get("author")
        if isinstance(author, dict):
            author = Author.from_document(author)

        genres = [
            Genre.from_document(g) if isinstance(g, dict) else g
            for g in doc.get("genre") or []
        ]

        return cls(
            id=doc.get("id"),
            title=doc.get("title", ""),
            author=author,
            summary=doc.get("summary", ""),
            isbn=doc.get("isbn", ""),
            genre=genres,
        )


# =============================================================================
# BookInstance
# =============================================================================

@dataclass
class BookInstance:
    """
    A physical copy of a book.

    book: Book id, or Book once populated
    status: Available | Maintenance | Loaned | Reserved
    """
    book: "str | Book | None"
    imprint: str
    status: str = DEFAULT_BOOK_INSTANCE_STATUS
    due_back: date | None = None
    id: str | None = None

    @property
    def url(self) -> str:
        return f"{CATALOG_PREFIX}/bookinstance/{self.id}"

    @property
    def book_id(self) -> str | None:
        return ref_id(self.book)

    @property
    def due_back_formatted(self) -> str:
        """e.g. 'Jan 5, 2027'; blank when no due date."""
        if not self.due_back:
            return ""
        return f"{self.due_back.strftime('%b')} {self.due_back.day}, {self.due_back.year}"

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "book": self.book_id,
            "imprint": self.imprint,
            "status": self.status,
            "due_back": _format_date(self.due_back),
        }
        if self.id is not None:
            doc["id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "BookInstance":
        book = doc.get("book")
        if isinstance(book, dict):
            book = Book.from_document(book)

        return cls(
            id=doc.get("id"),
            book=book,
            imprint=doc.get("imprint", ""),
            status=doc.get("status") or DEFAULT_BOOK_INSTANCE_STATUS,
            due_back=_parse_date(doc.get("due_back")),
        )

"""Domain layer: errors, schemas and constants."""

from .errors import CatalogError, ErrorCodes, NotFoundError, StoreError
from .schemas import Author, Book, BookInstance, Genre

__all__ = [
    "CatalogError",
    "ErrorCodes",
    "NotFoundError",
    "StoreError",
    "Author",
    "Book",
    "BookInstance",
    "Genre",
]

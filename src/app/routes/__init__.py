"""
FastAPI Routes.

HTML page routes for the catalog resources, mounted under /catalog.
"""

from . import authors, book_instances, books, catalog, genres

__all__ = ["authors", "book_instances", "books", "catalog", "genres"]

"""
Core layer: persistence and request plumbing.

Roles:
- document store contract + backends (memory, JSON files)
- concurrent fetch join
- id generation, logging setup
"""

from .fanout import fetch_all
from .ids import generate_document_id
from .json_store import JsonFileDocumentStore, atomic_write_json
from .logging import configure_logging
from .store import DocumentStore, MemoryDocumentStore, Query

__all__ = [
    # store
    "DocumentStore",
    "MemoryDocumentStore",
    "JsonFileDocumentStore",
    "Query",
    "atomic_write_json",
    # fanout
    "fetch_all",
    # ids
    "generate_document_id",
    # logging
    "configure_logging",
]

"""Shared route helpers."""

from fastapi import Request

from src.core.store import DocumentStore


def get_store(request: Request) -> DocumentStore:
    """Document store built at startup (app.state.store)."""
    return request.app.state.store

"""
Error definitions for the catalog.

Rules:
- Store failures are never swallowed -> StoreError propagates to the app handler
- Missing documents on read paths -> NotFoundError (404 page)
- Validation failures are not exceptions (see services.validate.ValidationResult)
"""

from typing import Any


class CatalogError(Exception):
    """
    Base error for the catalog.

    Usage:
        raise NotFoundError("Book not found", collection="books", id=book_id)
    """

    code = "CATALOG_ERROR"

    def __init__(self, message: str, code: str | None = None, **context: Any) -> None:
        if code is not None:
            self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        base = f"[{self.code}] {self.message}"
        return f"{base} ({ctx_str})" if ctx_str else base

    def to_dict(self) -> dict[str, Any]:
        """For logs and JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class StoreError(CatalogError):
    """Document store query or write failure."""

    code = "STORE_ERROR"


class NotFoundError(CatalogError):
    """Referenced id has no matching document."""

    code = "NOT_FOUND"


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """Error code constants."""

    # === Store ===
    STORE_READ_FAILED = "STORE_READ_FAILED"
    STORE_WRITE_FAILED = "STORE_WRITE_FAILED"
    STORE_CORRUPT = "STORE_CORRUPT"
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"
    STORE_LOCK_FAILED = "STORE_LOCK_FAILED"

    # === Lookup ===
    NOT_FOUND = "NOT_FOUND"

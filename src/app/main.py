"""
FastAPI application entry point.

Run:
- dev: uvicorn src.app.main:app --reload
- prod: uvicorn src.app.main:app
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response

from src.app.routes import authors, book_instances, books, catalog, genres
from src.app.services.views import render
from src.core.json_store import JsonFileDocumentStore
from src.core.logging import configure_logging
from src.core.store import DocumentStore, MemoryDocumentStore
from src.domain.constants import CATALOG_PREFIX
from src.domain.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """
    Load the YAML config.

    Order: explicit path → $CATALOG_CONFIG → <project root>/default.yaml.
    Environment overrides are applied on top (see apply_env_overrides).
    """
    if config_path is None:
        env_path = os.getenv("CATALOG_CONFIG")
        config_path = Path(env_path) if env_path else PROJECT_ROOT / "default.yaml"

    data: dict[Any, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    return apply_env_overrides(data)


def apply_env_overrides(config: dict) -> dict:
    """CATALOG_STORE_BACKEND / CATALOG_DATA_DIR / CATALOG_LOG_LEVEL."""
    overrides = {
        ("store", "backend"): os.getenv("CATALOG_STORE_BACKEND"),
        ("store", "data_dir"): os.getenv("CATALOG_DATA_DIR"),
        ("logging", "level"): os.getenv("CATALOG_LOG_LEVEL"),
    }
    for (section, key), value in overrides.items():
        if value:
            config.setdefault(section, {})[key] = value
    return config


def build_store(config: dict) -> DocumentStore:
    """
    Document store from config.

    store.backend: "json" (default) or "memory"
    store.data_dir: relative paths resolve against the project root
    store.lock_timeout: seconds to wait for a collection lock (json only)
    """
    store_config = config.get("store", {})
    backend = store_config.get("backend", "json")

    if backend == "memory":
        return MemoryDocumentStore()
    if backend == "json":
        data_dir = Path(store_config.get("data_dir", "data"))
        if not data_dir.is_absolute():
            data_dir = PROJECT_ROOT / data_dir
        return JsonFileDocumentStore(data_dir, lock_timeout=store_config.get("lock_timeout"))

    raise ValueError(f"Unknown store backend: {backend}")


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifecycle.

    Startup: config + logging + document store (unless injected)
    Shutdown: nothing to release (the store holds no open handles)
    """
    if getattr(app.state, "config", None) is None:
        app.state.config = load_config()

    configure_logging(app.state.config.get("logging", {}).get("level"))

    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(app.state.config)

    store = app.state.store
    if isinstance(store, JsonFileDocumentStore):
        logger.info(f"Catalog started with JSON store: {store.summary()}")
    else:
        logger.info(f"Catalog started with store {type(store).__name__}")

    yield


# =============================================================================
# Error Handlers
# =============================================================================


async def not_found_handler(request: Request, exc: NotFoundError) -> Response:
    logger.info(f"Not found: {exc}")
    return render(
        request,
        "error",
        {"title": "Not Found", "message": exc.message, "error": exc.to_dict()},
        status_code=404,
    )


async def store_error_handler(request: Request, exc: StoreError) -> Response:
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return render(
        request,
        "error",
        {"title": "Error", "message": "The catalog store failed.", "error": exc.to_dict()},
        status_code=500,
    )


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    config: dict | None = None,
    store: DocumentStore | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: parsed config (loaded at startup when None)
        store: document store (built from config at startup when None)
    """
    app = FastAPI(
        title="Local Library",
        description="Library catalog: books, copies, authors and genres",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store

    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(StoreError, store_error_handler)

    for module in (catalog, books, authors, genres, book_instances):
        app.include_router(module.router, prefix=CATALOG_PREFIX, tags=["Catalog"])

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url=f"{CATALOG_PREFIX}/")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )

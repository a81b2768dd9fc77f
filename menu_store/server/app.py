"""
FastAPI Application - JSON REST Store

Serves the menu document over REST with json-server semantics. This is
the durable source of truth the CollectionSynchronizer talks to through
HttpRemoteStore.

Endpoints:
    - GET/PUT/PATCH /branding: Singleton branding document
    - GET/POST /{resource}: List or create (branches, categories, dishes)
    - GET/PUT/PATCH/DELETE /{resource}/{id}: Single document
    - GET /health: Health check

Errors are JSON bodies of the form {"message": "..."}.

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from filelock import Timeout

from menu_store.core.config import get_settings
from menu_store.storage import DocumentNotFound, JsonDocumentStore, UnknownResource

logger = logging.getLogger(__name__)


class InvalidBody(ValueError):
    """Request body is not a JSON object."""


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidBody("Request body must be a JSON object")
    return payload


def create_app(db_file: Optional[Union[str, Path]] = None) -> FastAPI:
    """
    Build the REST application around one JSON document file.

    Args:
        db_file: Database file; defaults to DB_FILE from settings
    """
    settings = get_settings()
    store = JsonDocumentStore(
        path=db_file or settings.db_file,
        lock_timeout=settings.db_lock_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name} REST store")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Database: {store.path}")
        logger.info("=" * 60)
        yield
        logger.info("Shutting down...")

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Flat-file JSON REST store for branding, branches, categories and dishes.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(DocumentNotFound)
    async def not_found_handler(request: Request, exc: DocumentNotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": f"Not found: {exc}"})

    @app.exception_handler(UnknownResource)
    async def unknown_resource_handler(request: Request, exc: UnknownResource) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": f"Unknown resource: {exc}"})

    @app.exception_handler(InvalidBody)
    async def bad_body_handler(request: Request, exc: InvalidBody) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": "Request body must be valid JSON"})

    @app.exception_handler(Timeout)
    async def lock_timeout_handler(request: Request, exc: Timeout) -> JSONResponse:
        logger.error(f"Database lock timeout - {exc}")
        return JSONResponse(status_code=503, content={"message": "Database is busy, try again"})

    # =========================================================================
    # HEALTH
    # =========================================================================

    @app.get("/health", tags=["Health"])
    def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "database": str(store.path),
            "timestamp": datetime.now().isoformat(),
        }

    # =========================================================================
    # BRANDING (SINGLETON)
    # =========================================================================

    @app.get("/branding", tags=["Branding"])
    def get_branding() -> dict[str, Any]:
        return store.get_singleton("branding")

    @app.put("/branding", tags=["Branding"])
    def replace_branding(payload: Any = Body(...)) -> dict[str, Any]:
        return store.replace_singleton("branding", _require_object(payload))

    @app.patch("/branding", tags=["Branding"])
    def patch_branding(payload: Any = Body(...)) -> dict[str, Any]:
        return store.patch_singleton("branding", _require_object(payload))

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    @app.get("/{resource}", tags=["Collections"])
    def list_documents(resource: str) -> list[dict[str, Any]]:
        return store.list_documents(resource)

    @app.post("/{resource}", status_code=201, tags=["Collections"])
    def create_document(resource: str, payload: Any = Body(...)) -> dict[str, Any]:
        created = store.create(resource, _require_object(payload))
        logger.info(f"Created {resource}/{created['id']}")
        return created

    @app.get("/{resource}/{doc_id}", tags=["Collections"])
    def get_document(resource: str, doc_id: str) -> dict[str, Any]:
        return store.get(resource, doc_id)

    @app.put("/{resource}/{doc_id}", tags=["Collections"])
    def replace_document(resource: str, doc_id: str, payload: Any = Body(...)) -> dict[str, Any]:
        return store.replace(resource, doc_id, _require_object(payload))

    @app.patch("/{resource}/{doc_id}", tags=["Collections"])
    def patch_document(resource: str, doc_id: str, payload: Any = Body(...)) -> dict[str, Any]:
        return store.patch(resource, doc_id, _require_object(payload))

    @app.delete("/{resource}/{doc_id}", tags=["Collections"])
    def delete_document(resource: str, doc_id: str) -> dict[str, Any]:
        deleted = store.delete(resource, doc_id)
        logger.info(f"Deleted {resource}/{doc_id}")
        return deleted

    return app

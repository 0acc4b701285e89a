from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from progresslens.config import get_config
from progresslens.db.base import get_engine
from progresslens.db.migrations_runner import apply_migrations
from progresslens.http.problem import (
    handle_domain_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_storage_error,
    handle_unexpected_error,
)
from progresslens.http.request_id import RequestIdMiddleware
from progresslens.logging_setup import configure_logging
from progresslens.logic.errors import DomainError
from progresslens.middleware.cors import apply_cors
from progresslens.routes import api_router

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _migrations_dir(dsn: str) -> Path:
    name = "sqlite_migrations" if dsn.startswith("sqlite") else "migrations"
    return PROJECT_ROOT / name


def _auto_apply_enabled() -> bool:
    return os.getenv("AUTO_APPLY_MIGRATIONS", "").strip().lower() in {"1", "true", "yes", "on"}


def create_app() -> FastAPI:
    # Configure global logging before app instantiation so all modules emit
    configure_logging()
    config = get_config()

    app = FastAPI(title="ProgressLens Authoring Service")
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)
    apply_cors(app, origins=config.cors.origins)

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        if not _auto_apply_enabled():
            logger.info("AUTO_APPLY_MIGRATIONS disabled; skipping migrations at startup")
            return
        dsn = config.database.dsn
        try:
            applied = apply_migrations(get_engine(dsn), str(_migrations_dir(dsn)))
        except Exception:
            logger.error("Failed to apply migrations at startup", exc_info=True)
            raise
        logger.info("startup.migrations_applied count=%s", len(applied))

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    def health() -> dict:
        try:
            with get_engine(config.database.dsn).connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "db": False, "reason": e.__class__.__name__}
        return {"status": "ok", "db": True}

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.

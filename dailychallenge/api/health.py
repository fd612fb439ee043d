"""
Health endpoints: liveness and readiness.

Readiness checks the store: SQL stores need a reachable database with the
required tables, and every store needs a seeded catalog.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from dailychallenge.core.database import REQUIRED_TABLES, check_connection
from dailychallenge.core.logging import LOGGER_NAME
from dailychallenge.features.challenges.catalog import has_catalog
from dailychallenge.features.challenges.store_sql import SqlChallengeStore

logger = logging.getLogger(LOGGER_NAME)

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz(request: Request):
    """Readiness check: store connectivity, tables and seeded catalog."""
    store = request.app.state.store

    if isinstance(store, SqlChallengeStore):
        if not check_connection(store.engine):
            return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})
        inspector = inspect(store.engine)
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
        if missing:
            detail = f"missing tables: {', '.join(missing)}"
            logger.warning(f"[readyz] {detail}")
            return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

    if not has_catalog(store):
        logger.warning("[readyz] challenge catalog is empty")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "catalog not seeded"})

    return {"status": "ok", "store": type(store).__name__}

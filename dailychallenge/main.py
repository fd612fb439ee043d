import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI

# Load env before settings are read
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from dailychallenge.api import challenges, health, users
from dailychallenge.core.config import settings, validate_config
from dailychallenge.core.database import create_all_tables, init_engine
from dailychallenge.core.errors import install_error_handlers
from dailychallenge.core.logging import LOGGER_NAME, configure_logging
from dailychallenge.core.middleware.request_id import RequestIdMiddleware
from dailychallenge.features.challenges.catalog import seed_catalog
from dailychallenge.features.challenges.store import ChallengeStore, InMemoryChallengeStore
from dailychallenge.features.challenges.store_sql import SqlChallengeStore


def build_store():
    """
    Store selected by configuration: SQL when DATABASE_URL is set, otherwise
    in-memory. Returns (store, engine) where engine is None for memory.
    """
    if settings.DATABASE_URL:
        engine = init_engine(settings.DATABASE_URL)
        create_all_tables(engine)
        store = SqlChallengeStore(engine)
    else:
        engine = None
        store = InMemoryChallengeStore()

    if settings.SEED_ON_STARTUP:
        seed_catalog(store)
    return store, engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger(LOGGER_NAME)
    logger.info("Starting daily challenge backend...")
    engine = None
    if getattr(app.state, "store", None) is None:
        app.state.store, engine = build_store()
    try:
        yield
    finally:
        if engine is not None:
            engine.dispose()
        logger.info("Stopping daily challenge backend...")


def create_app(store: Optional[ChallengeStore] = None) -> FastAPI:
    """Build the application; an explicit store skips configuration-driven setup."""
    configure_logging(settings.ENV)
    validate_config(strict=settings.CONFIG_STRICT)

    app = FastAPI(title="Daily Challenge - Backend", lifespan=lifespan)
    app.state.store = store

    app.add_middleware(RequestIdMiddleware)

    install_error_handlers(app)

    app.include_router(challenges.router)
    app.include_router(users.router)
    app.include_router(health.router)
    return app


app = create_app()

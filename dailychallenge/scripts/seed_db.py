"""
Initialize the schema and seed the challenge catalog.

Usage:
    python -m dailychallenge.scripts.seed_db [--force] [--reset] [--database-url URL]

Skips seeding when a catalog already exists unless --force is given.
--reset drops and recreates every table first (destroys assignments).
"""
from __future__ import annotations

import argparse
from typing import Dict, Optional

from dailychallenge.core.config import settings
from dailychallenge.core.database import create_all_tables, init_engine, reset_database
from dailychallenge.features.challenges.catalog import seed_catalog
from dailychallenge.features.challenges.store_sql import SqlChallengeStore


def seed_database(*, database_url: Optional[str] = None, force: bool = False, reset: bool = False) -> Dict:
    engine = init_engine(database_url or settings.DATABASE_URL)
    try:
        if reset:
            reset_database(engine)
        else:
            create_all_tables(engine)
        categories_added, templates_added = seed_catalog(SqlChallengeStore(engine), force=force)
    finally:
        engine.dispose()
    return {"categories": categories_added, "templates": templates_added, "reset": reset}


def main() -> int:
    parser = argparse.ArgumentParser(description="Create tables and seed challenge categories and templates.")
    parser.add_argument("--force", action="store_true", help="Seed even if a catalog already exists (adds missing rows only).")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding.")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL.")
    args = parser.parse_args()

    report = seed_database(database_url=args.database_url, force=args.force, reset=args.reset)
    print(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

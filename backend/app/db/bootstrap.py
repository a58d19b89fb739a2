from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

# Tables the availability engine reads; readiness reports any that are missing.
REQUIRED_TABLES: set[str] = {
    "branches",
    "rooms",
    "teachers",
    "subjects",
    "classes",
    "class_schedules",
    "makeup_classes",
    "trial_sessions",
    "holidays",
}


def missing_tables() -> list[str]:
    with engine.connect() as connection:
        existing = set(inspect(connection).get_table_names())
    return sorted(REQUIRED_TABLES - existing)


def ensure_schema() -> None:
    """Create any missing tables. Intended for local SQLite setups; production uses Alembic."""
    try:
        missing = missing_tables()
        if not missing:
            return
        Base.metadata.create_all(bind=engine)
        logger.info("Created missing tables: %s", ", ".join(missing))
    except SQLAlchemyError:
        logger.exception("Schema bootstrap failed")

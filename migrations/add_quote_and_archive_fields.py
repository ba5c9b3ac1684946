"""
Schema v1 -> v2: quote content, archive and last-edited audit fields on bookings

Migration to add:
- quote_content (custom quote text)
- archived, archived_at, archived_by
- last_edited_by, last_edited_at

Run with: python run_migration.py
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

VERSION = 2

NEW_COLUMNS = {
    "quote_content": "TEXT",
    "archived": "BOOLEAN NOT NULL DEFAULT FALSE",
    "archived_at": "TIMESTAMP",
    "archived_by": "VARCHAR(64)",
    "last_edited_by": "VARCHAR(64)",
    "last_edited_at": "TIMESTAMP",
}


def upgrade(engine: Engine) -> list[str]:
    """Add the v2 booking columns. Safe to run more than once."""
    existing_columns = {column["name"] for column in inspect(engine).get_columns("bookings")}
    added = []

    with engine.begin() as conn:
        for name, ddl in NEW_COLUMNS.items():
            if name in existing_columns:
                logger.info(f"ℹ️  {name} column already exists")
                continue
            conn.execute(text(f"ALTER TABLE bookings ADD COLUMN {name} {ddl}"))
            added.append(name)
            logger.info(f"✅ Added {name} column")

    return added


def downgrade(engine: Engine) -> None:
    """Remove the v2 booking columns"""
    existing_columns = {column["name"] for column in inspect(engine).get_columns("bookings")}
    with engine.begin() as conn:
        for name in NEW_COLUMNS:
            if name in existing_columns:
                conn.execute(text(f"ALTER TABLE bookings DROP COLUMN {name}"))
    logger.info("✅ Migration rolled back successfully!")

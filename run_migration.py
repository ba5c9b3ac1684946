"""
Versioned schema migration runner
Usage: python run_migration.py [--down]

Brings the database named by DATABASE_URL up to models.SCHEMA_VERSION. A
database without a schema_info row but with a bookings table is treated as v1.
"""

import argparse
import logging
import sys

from sqlalchemy import inspect

from eventbooking import config
from eventbooking.database import Base, Database
from eventbooking.models import SCHEMA_VERSION, SchemaInfo
from migrations import add_payment_reference_index, add_quote_and_archive_fields

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

# (version reached, module with upgrade/downgrade)
MIGRATIONS = [
    (add_quote_and_archive_fields.VERSION, add_quote_and_archive_fields),
    (add_payment_reference_index.VERSION, add_payment_reference_index),
]


def get_current_version(database: Database) -> int:
    """Applied schema version; 0 for an empty database"""
    tables = set(inspect(database.engine).get_table_names())
    if "bookings" not in tables:
        return 0
    if "schema_info" not in tables:
        return 1

    with database.session() as db:
        info = db.query(SchemaInfo).order_by(SchemaInfo.version.desc()).first()
        return info.version if info else 1


def stamp_version(database: Database, version: int) -> None:
    with database.session() as db:
        db.add(SchemaInfo(version=version))
        db.commit()


def run_migrations(database: Database, target: int = SCHEMA_VERSION) -> int:
    """Apply pending migrations in order and return the resulting version"""
    current = get_current_version(database)

    if current == 0:
        logger.info("Empty database, creating schema")
        database.create_schema()
        return SCHEMA_VERSION

    SchemaInfo.__table__.create(bind=database.engine, checkfirst=True)
    logger.info(f"Current schema version: {current}")

    for version, migration in MIGRATIONS:
        if current < version <= target:
            logger.info(f"Applying {migration.__name__} (v{version})...")
            migration.upgrade(database.engine)
            stamp_version(database, version)
            current = version

    # Tables introduced after v1 that a migration did not create
    Base.metadata.create_all(bind=database.engine, checkfirst=True)
    logger.info(f"✅ Schema is at version {current}")
    return current


def rollback_last(database: Database) -> int:
    """Undo the most recent migration and return the resulting version"""
    current = get_current_version(database)
    for version, migration in reversed(MIGRATIONS):
        if version == current:
            migration.downgrade(database.engine)
            with database.session() as db:
                db.query(SchemaInfo).filter(SchemaInfo.version == version).delete()
                db.commit()
            return version - 1

    logger.info(f"Nothing to roll back at version {current}")
    return current


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Manage schema migrations")
    parser.add_argument("--down", action="store_true", help="Rollback the latest migration")
    args = parser.parse_args()

    database = Database(config.DATABASE_URL)
    try:
        database.init()
        if args.down:
            logger.info("Rolling back migration...")
            rollback_last(database)
        else:
            logger.info("Running migrations...")
            run_migrations(database)
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
    finally:
        database.dispose()

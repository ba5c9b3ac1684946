"""
Schema v2 -> v3: unique payment reference number per booking

Validated payments are deduplicated on (booking_id, lower(reference_number)).
Existing duplicates must be resolved by hand before this runs.

Run with: python run_migration.py
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

VERSION = 3

INDEX_NAME = "uq_payments_booking_reference"


def upgrade(engine: Engine) -> bool:
    """Create the index; returns False when there is no payments table yet"""
    if "payments" not in inspect(engine).get_table_names():
        logger.info("ℹ️  payments table not created yet, index comes with it")
        return False

    with engine.begin() as conn:
        duplicates = conn.execute(
            text(
                "SELECT booking_id, lower(reference_number) AS reference, COUNT(*) "
                "FROM payments WHERE reference_number IS NOT NULL "
                "GROUP BY booking_id, lower(reference_number) HAVING COUNT(*) > 1"
            )
        ).fetchall()
        for booking_id, reference, count in duplicates:
            logger.error(f"❌ {booking_id} has {count} payments with reference {reference}")
        if duplicates:
            raise RuntimeError(f"{len(duplicates)} duplicate payment reference(s) block {INDEX_NAME}")

        conn.execute(
            text(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {INDEX_NAME} "
                "ON payments (booking_id, lower(reference_number))"
            )
        )
    logger.info(f"✅ Created {INDEX_NAME}")
    return True


def downgrade(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"DROP INDEX IF EXISTS {INDEX_NAME}"))
    logger.info("✅ Migration rolled back successfully!")

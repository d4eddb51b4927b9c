"""
Seed data for development and testing.
Creates the default dining tables "1", "2" and "3" when the catalog is empty.
"""

from shared.config.constants import TableStatus, TableType
from shared.config.logging import get_logger
from tableside.repositories import DuplicateRecordError, Persistence, TableRecord

logger = get_logger(__name__)

DEFAULT_SEATS = 4

DEMO_TABLES = [
    TableRecord(table_id="1", name="Table 1", type=TableType.REGULAR, seats=DEFAULT_SEATS, status=TableStatus.AVAILABLE),
    TableRecord(table_id="2", name="Table 2", type=TableType.REGULAR, seats=DEFAULT_SEATS, status=TableStatus.AVAILABLE),
    TableRecord(table_id="3", name="Table 3", type=TableType.REGULAR, seats=DEFAULT_SEATS, status=TableStatus.AVAILABLE),
]


def seed_demo_tables(store: Persistence) -> int:
    """
    Insert the demo tables if no table exists yet.

    Returns the number of tables created (0 when already seeded).
    """
    if store.list_tables():
        logger.info("Seed skipped, tables already exist")
        return 0

    created = 0
    for table in DEMO_TABLES:
        try:
            store.add_table(table)
            created += 1
        except DuplicateRecordError:
            # Another worker seeded concurrently
            continue

    logger.info("Demo tables seeded", count=created)
    return created

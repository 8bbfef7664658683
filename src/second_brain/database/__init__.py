"""
# Database Package

The persistence layer of the Second Brain API, built on **Motor** (async MongoDB driver).

- **`manager`**: the `DatabaseManager` singleton handling connection lifecycle, health
  checks and index creation.

The `db_manager` instance is created at import time without I/O; the connection is
established during application startup via `db_manager.connect()`.
"""

from second_brain.database.manager import (
    BRAINS_COLLECTION,
    ITEMS_COLLECTION,
    USERS_COLLECTION,
    DatabaseManager,
    db_manager,
)

__all__ = ["DatabaseManager", "db_manager", "USERS_COLLECTION", "BRAINS_COLLECTION", "ITEMS_COLLECTION"]

"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the Second Brain API through the
`DatabaseManager` class, built on the **Motor** async driver.

## Architecture Overview

```
┌──────────────┐      ┌───────────────────────────────┐
│ Repositories │─────▶│        DatabaseManager        │
│ (Mongo*Repo) │      │          (Singleton)          │
└──────────────┘      └──────────────┬────────────────┘
                                     │
                      ┌──────────────▼──────────────┐
                      │      Connection Pool        │
                      │  (Motor/PyMongo Internal)   │
                      └──────────────┬──────────────┘
                                     ▼
                                  MongoDB
```

## Key Features

- **Connection lifecycle**: `connect()` with exponential backoff (1s, 2s, 4s), `disconnect()`.
- **Health monitoring**: `health_check()` pings the server.
- **Indexes**: `create_indexes()` installs the unique and query indexes for
  `users`, `brains` and `items`, including the text index used for item search.
- **Query logging**: `log_query_start/success/error` with secrets redacted.

## Usage

```python
from second_brain.database import db_manager

await db_manager.connect()
brains = db_manager.get_collection("brains")
brain = await brains.find_one({"brain_id": "brn_123"})
await db_manager.disconnect()
```

## Module Attributes

Attributes:
    db_logger (Logger): Logger for database operations (`[DATABASE]`).
    perf_logger (Logger): Logger for timings (`[DB_PERFORMANCE]`).
    health_logger (Logger): Logger for health checks (`[DB_HEALTH]`).
    db_manager (DatabaseManager): Global singleton, connected in the app lifespan.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from second_brain.config import settings
from second_brain.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

USERS_COLLECTION = "users"
BRAINS_COLLECTION = "brains"
ITEMS_COLLECTION = "items"

MAX_POOL_SIZE = 50
MIN_POOL_SIZE = 5

SENSITIVE_FIELDS = {
    "password",
    "hashed_password",
    "token",
    "share_token",
    "secret",
    "key",
    "credential",
    "access_token",
    "id_token",
}


class DatabaseManager:
    """
    Manages the MongoDB connection, collections and indexes.

    **Lifecycle:**
    1. **Instantiation**: `client=None`, `database=None` (no I/O).
    2. **Connection**: `connect()` establishes the pool and pings the server.
    3. **Operations**: `get_collection()` hands out Motor collections.
    4. **Shutdown**: `disconnect()` closes the pool.

    Attributes:
        client (Optional[AsyncIOMotorClient]): Motor client, set by `connect()`.
        database (Optional[AsyncIOMotorDatabase]): Selected database, set by `connect()`.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return f"mongodb://{settings.MONGODB_USERNAME}:{password}@{settings.MONGODB_URL.replace('mongodb://', '')}"
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection with exponential backoff retry logic.

        Up to three attempts are made (waiting 1s, then 2s) on `ServerSelectionTimeoutError`
        or `ConnectionFailure`; the last failure is re-raised. Lower-level `ConnectionError`
        and `TimeoutError` are raised immediately.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - URL: %s, Database: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_URL,
                    settings.MONGODB_DATABASE,
                    MAX_POOL_SIZE,
                    MIN_POOL_SIZE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=MAX_POOL_SIZE,
                    minPoolSize=MIN_POOL_SIZE,
                    tz_aware=True,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

            except (ConnectionError, TimeoutError) as e:
                perf_logger.error("Connection error after %.3fs", time.time() - attempt_start)
                db_logger.error("Connection error connecting to MongoDB: %s", e)
                raise

    async def disconnect(self):
        """Close the Motor client and its pooled connections. Safe to call when not connected."""
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client:
            self.client.close()
            perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
            db_logger.info("Successfully disconnected from MongoDB")
        else:
            db_logger.warning("Disconnect called but no active MongoDB connection found")

    async def health_check(self) -> bool:
        """
        Verify the connection with a `ping`.

        Returns:
            bool: `True` if the server answered, `False` otherwise (never raises).
        """
        start_time = time.time()
        try:
            if self.client is None:
                health_logger.warning("Health check failed: No database client available")
                return False

            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed successfully in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            perf_logger.warning("Database health check failed after %.3fs", time.time() - start_time)
            health_logger.error("Database health check failed: %s", e)
            return False
        except Exception as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a Motor collection from the connected database.

        Raises:
            RuntimeError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to access collection '%s' before connecting", collection_name)
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.database[collection_name]

    async def create_indexes(self):
        """Create the unique, query and text indexes for users, brains and items."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        try:
            users = self.get_collection(USERS_COLLECTION)
            await self._create_index_if_not_exists(users, "user_id", {"unique": True})
            await self._create_index_if_not_exists(users, "username", {"unique": True})
            await self._create_index_if_not_exists(users, "email", {"unique": True})
            await self._create_index_if_not_exists(users, "google_id", {"unique": True, "sparse": True})

            brains = self.get_collection(BRAINS_COLLECTION)
            await self._create_index_if_not_exists(brains, "brain_id", {"unique": True})
            await self._create_index_if_not_exists(brains, "share_token", {"unique": True, "sparse": True})
            await self._create_index_if_not_exists(brains, [("owner_id", ASCENDING), ("created_at", DESCENDING)], {})
            await self._create_index_if_not_exists(brains, "collaborators", {})

            items = self.get_collection(ITEMS_COLLECTION)
            await self._create_index_if_not_exists(items, "item_id", {"unique": True})
            await self._create_index_if_not_exists(items, [("owner_id", ASCENDING), ("created_at", DESCENDING)], {})
            await self._create_index_if_not_exists(items, [("brain_id", ASCENDING), ("created_at", DESCENDING)], {})
            await self._create_index_if_not_exists(items, "tags", {})
            await self._create_index_if_not_exists(
                items,
                [("title", TEXT), ("description", TEXT), ("content", TEXT)],
                {"name": "item_text_search"},
            )

            perf_logger.info("Database index creation completed successfully in %.3fs", time.time() - start_time)
            db_logger.info("Database indexes created successfully")

        except Exception as e:
            perf_logger.error("Database index creation failed after %.3fs", time.time() - start_time)
            db_logger.error("Failed to create database indexes: %s", e)
            raise

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()

        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except Exception as e:
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time)
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)

    # Database operation logging utilities
    def log_query_start(self, collection_name: str, operation: str, query: Optional[Dict] = None) -> float:
        """Log the start of a database query and return start time for performance tracking"""
        safe_query = self._sanitize_query_for_logging(query) if query else {}
        db_logger.debug("Starting %s operation on collection '%s' - Query: %s", operation, collection_name, safe_query)
        return time.time()

    def log_query_success(
        self, collection_name: str, operation: str, start_time: float, result_count: Optional[int] = None
    ):
        duration = time.time() - start_time
        if result_count is not None:
            perf_logger.debug(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.debug("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

    def log_query_error(
        self, collection_name: str, operation: str, start_time: float, error: Exception, query: Optional[Dict] = None
    ):
        duration = time.time() - start_time
        safe_query = self._sanitize_query_for_logging(query) if query else {}
        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s, Query: %s",
            operation,
            collection_name,
            duration,
            error,
            safe_query,
        )

    def _sanitize_query_for_logging(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize database queries for safe logging by removing sensitive data"""
        if not isinstance(query, dict):
            return {}

        sanitized: Dict[str, Any] = {}
        for key, value in query.items():
            if any(sensitive_field in key.lower() for sensitive_field in SENSITIVE_FIELDS):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_query_for_logging(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_query_for_logging(item) if isinstance(item, dict) else item for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized


db_manager = DatabaseManager()

__all__: List[str] = ["DatabaseManager", "db_manager", "USERS_COLLECTION", "BRAINS_COLLECTION", "ITEMS_COLLECTION"]

"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the Starter Pack Explorer API.
It implements the `DatabaseManager` class that owns the single **Motor** client shared by
every request, and exposes the two collections the query layer reads from.

## Architecture Overview

```
┌──────────────┐      ┌───────────────────────────────┐
│ Route / Svc  │─────▶│        DatabaseManager        │
│  (per req.)  │      │          (Singleton)          │
└──────────────┘      └──────────────┬────────────────┘
                                     │
                      ┌──────────────▼──────────────┐
                      │      Connection Pool        │
                      │  (Motor/PyMongo Internal)   │
                      └──────────────┬──────────────┘
                                     │
                     ┌───────────────┴───────────────┐
                     ▼                               ▼
             starter_packs                         users
```

## Key Features

### 1. Connection Lifecycle Management
- **Async Initialization**: `connect()` runs once in the FastAPI lifespan startup
- **Graceful Shutdown**: `disconnect()` closes the pool at shutdown
- **Health Monitoring**: `health_check()` pings the server for `/health`

### 2. Collections
- `packs` → `settings.PACKS_COLLECTION` (default `starter_packs`)
- `users` → `settings.USERS_COLLECTION` (default `users`)

### 3. Observability
- **Performance Logging**: connection, ping and index timings (`[DB_PERFORMANCE]`)
- **Query Logging**: `log_query_start/success/error` with sanitized filters

## Usage Examples

```python
from starter_pack_explorer.database import db_manager

await db_manager.connect()
pack = await db_manager.packs.find_one({"rkey": "3kabc"})
await db_manager.disconnect()
```

## Module Attributes

Attributes:
    db_logger (Logger): Logger for database operations (`[DATABASE]`).
    perf_logger (Logger): Logger for performance metrics (`[DB_PERFORMANCE]`).
    health_logger (Logger): Logger for health checks (`[DB_HEALTH]`).
    db_manager (DatabaseManager): Global singleton instance, connected in `main.py`.
"""

import asyncio
import re
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from starter_pack_explorer.config import settings
from starter_pack_explorer.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

MAX_LOGGED_PATTERN_LENGTH = 64


class DatabaseManager:
    """
    Manages the MongoDB connection and the collections the API reads from.

    **Lifecycle:**
    1. **Instantiation**: `client=None`, `database=None`
    2. **Connection**: `connect()` establishes the pool and pings the server
    3. **Operations**: `packs`, `users` or `get_collection()` for queries
    4. **Shutdown**: `disconnect()` closes the pool

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): The Motor client, `None` until connected.
        database (`Optional[AsyncIOMotorDatabase]`): The selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    @property
    def is_connected(self) -> bool:
        return self.database is not None

    async def connect(self):
        """
        Establish connection to MongoDB with exponential backoff retry logic.

        Up to three attempts are made, waiting 1s then 2s between them. Credentials from
        `MONGODB_USERNAME`/`MONGODB_PASSWORD` are injected into the connection string when set.
        Calling `connect()` on an already-connected manager is a no-op.

        Raises:
            `ServerSelectionTimeoutError`: MongoDB unreachable after all attempts.
            `ConnectionFailure`: Authentication failed or connection refused.
        """
        if self.is_connected:
            db_logger.debug("connect() called on an already connected manager")
            return

        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)

                connection_string = self._build_connection_string()

                db_logger.info(
                    "MongoDB connection config - Database: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_MAX_POOL_SIZE,
                    settings.MONGODB_MIN_POOL_SIZE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                client = AsyncIOMotorClient(
                    connection_string,
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
                    minPoolSize=settings.MONGODB_MIN_POOL_SIZE,
                )

                ping_start = time.time()
                await client.admin.command("ping")
                ping_duration = time.time() - ping_start

                self.client = client
                self.database = client[settings.MONGODB_DATABASE]

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

    def _build_connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def disconnect(self):
        """
        Close the Motor client and release every pooled connection.

        Safe to call when not connected (logs a warning and returns).
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.client.close()
        self.client = None
        self.database = None
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Verify MongoDB connection health with a lightweight ping operation.

        Returns:
            `bool`: `True` if the database answers the ping, `False` otherwise. Never raises.
        """
        start_time = time.time()
        health_logger.debug("Starting database health check")

        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False

        try:
            await self.client.admin.command("ping")
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            perf_logger.warning("Database health check failed after %.3fs", time.time() - start_time)
            health_logger.error("Database health check failed: %s", e)
            return False
        except Exception as e:
            perf_logger.error("Unexpected error during health check after %.3fs", time.time() - start_time)
            health_logger.error("Unexpected error during health check: %s", e)
            return False

        perf_logger.debug("Database health check completed successfully in %.3fs", time.time() - start_time)
        return True

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a MongoDB collection by name from the connected database.

        Raises:
            `ConnectionError`: If `connect()` has not been called yet.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    @property
    def packs(self) -> AsyncIOMotorCollection:
        return self.get_collection(settings.PACKS_COLLECTION)

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self.get_collection(settings.USERS_COLLECTION)

    async def create_indexes(self):
        """Create the indexes backing search, sort and join lookups."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        db_logger.info("Creating indexes for '%s' collection", settings.PACKS_COLLECTION)
        packs = self.packs
        await self._create_index_if_not_exists(packs, "rkey", {"unique": True})
        await self._create_index_if_not_exists(packs, "creator_did", {})
        await self._create_index_if_not_exists(packs, "deleted", {})
        await self._create_index_if_not_exists(packs, [("user_count", DESCENDING)], {})
        await self._create_index_if_not_exists(packs, [("weekly_joins", DESCENDING)], {})
        await self._create_index_if_not_exists(packs, [("created_at", DESCENDING)], {})
        await self._create_index_if_not_exists(packs, [("name", ASCENDING)], {})

        db_logger.info("Creating indexes for '%s' collection", settings.USERS_COLLECTION)
        users = self.users
        await self._create_index_if_not_exists(users, "did", {"unique": True})
        await self._create_index_if_not_exists(users, "handle", {})
        await self._create_index_if_not_exists(users, "deleted", {})
        await self._create_index_if_not_exists(users, [("followers_count", DESCENDING)], {})
        await self._create_index_if_not_exists(users, "pack_ids", {})

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist. Failures are logged, not raised."""
        start_time = time.time()

        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except Exception as e:
            perf_logger.warning(
                "Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time
            )
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)

    # Database operation logging utilities
    def log_query_start(self, collection_name: str, operation: str, query: Optional[Any] = None) -> float:
        """Log the start of a database query and return start time for performance tracking"""
        start_time = time.time()
        db_logger.debug(
            "Starting %s operation on collection '%s' - Query: %s",
            operation,
            collection_name,
            self._sanitize_query_for_logging(query),
        )
        return start_time

    def log_query_success(
        self, collection_name: str, operation: str, start_time: float, result_count: Optional[int] = None
    ):
        """Log successful completion of a database query with performance metrics"""
        duration = time.time() - start_time
        if result_count is not None:
            perf_logger.info(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.info("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

    def log_query_error(
        self, collection_name: str, operation: str, start_time: float, error: Exception, query: Optional[Any] = None
    ):
        """Log database query errors with context and performance metrics"""
        duration = time.time() - start_time
        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s, Query: %s",
            operation,
            collection_name,
            duration,
            error,
            self._sanitize_query_for_logging(query),
        )

    def _sanitize_query_for_logging(self, query: Any) -> Any:
        """
        Make a filter or pipeline safe to log.

        Compiled patterns become their source string and long `$regex` values are truncated,
        so user-supplied search text never floods the logs.
        """
        if isinstance(query, dict):
            sanitized: Dict[str, Any] = {}
            for key, value in query.items():
                if key == "$regex":
                    pattern = value.pattern if isinstance(value, re.Pattern) else str(value)
                    if len(pattern) > MAX_LOGGED_PATTERN_LENGTH:
                        pattern = pattern[:MAX_LOGGED_PATTERN_LENGTH] + "..."
                    sanitized[key] = pattern
                else:
                    sanitized[key] = self._sanitize_query_for_logging(value)
            return sanitized
        if isinstance(query, (list, tuple)):
            return [self._sanitize_query_for_logging(item) for item in query]
        if query is None:
            return {}
        return query


# Global database manager instance
db_manager = DatabaseManager()

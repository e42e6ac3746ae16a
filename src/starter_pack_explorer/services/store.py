"""
# Store Operation Helper

Every read the query layer issues goes through `run_store_operation()`, which:

1. bounds the operation with `DB_OPERATION_TIMEOUT_SECONDS` (`asyncio.wait_for`),
2. logs start, success and failure through the `DatabaseManager` query-logging helpers,
3. converts driver failures into `StoreError` / `StoreTimeoutError`, except a search
   pattern the server refuses to compile, which becomes `InvalidQueryError`.

A timed-out operation is abandoned client-side; it is not cancelled on the server.
There are no retries: a failed read fails the request.
"""

import asyncio
from typing import Any, Awaitable, Optional

from pymongo.errors import OperationFailure, PyMongoError

from starter_pack_explorer.config import settings
from starter_pack_explorer.database import db_manager
from starter_pack_explorer.services.exceptions import InvalidQueryError, StoreError, StoreTimeoutError

# Server error code for "Regular expression is invalid"
INVALID_REGEX_CODE = 51091


def is_invalid_pattern_error(error: OperationFailure) -> bool:
    return error.code == INVALID_REGEX_CODE or "regular expression is invalid" in str(error).lower()


async def run_store_operation(
    awaitable: Awaitable[Any],
    operation: str,
    collection_name: str,
    query: Optional[Any] = None,
    timeout: Optional[float] = None,
) -> Any:
    """
    Await a store operation under the configured timeout.

    Args:
        awaitable: e.g. `collection.count_documents(filter)` or `cursor.to_list(length=None)`.
        operation: Operation name for logs (`"count_documents"`, `"aggregate"`, ...).
        collection_name: Collection name for logs.
        query: Filter or pipeline, logged in sanitized form.
        timeout: Override for `DB_OPERATION_TIMEOUT_SECONDS`.

    Raises:
        StoreTimeoutError: The operation did not finish in time.
        InvalidQueryError: The server rejected a `$regex` pattern.
        StoreError: The driver raised, or the database is not connected.
    """
    limit = timeout if timeout is not None else settings.DB_OPERATION_TIMEOUT_SECONDS
    start_time = db_manager.log_query_start(collection_name, operation, query)

    try:
        result = await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError as e:
        db_manager.log_query_error(collection_name, operation, start_time, e, query)
        raise StoreTimeoutError(
            "Database operation timed out", details=f"{operation} on '{collection_name}' exceeded {limit}s"
        ) from e
    except OperationFailure as e:
        db_manager.log_query_error(collection_name, operation, start_time, e, query)
        if is_invalid_pattern_error(e):
            raise InvalidQueryError("Invalid search pattern", details=str(e)) from e
        raise StoreError("Database operation failed", details=str(e)) from e
    except (PyMongoError, ConnectionError) as e:
        db_manager.log_query_error(collection_name, operation, start_time, e, query)
        raise StoreError("Database operation failed", details=str(e)) from e

    db_manager.log_query_success(
        collection_name,
        operation,
        start_time,
        result_count=len(result) if isinstance(result, list) else None,
    )
    return result

import asyncio

import pytest
from pymongo.errors import OperationFailure

from starter_pack_explorer.services.exceptions import InvalidQueryError, StoreError, StoreTimeoutError
from starter_pack_explorer.services.store import run_store_operation


async def slow_count():
    await asyncio.sleep(1)
    return 5


async def failing_find():
    raise OperationFailure("bad $regex")


async def quick_find():
    return [{"rkey": "a"}, {"rkey": "b"}]


@pytest.mark.asyncio
async def test_result_is_returned():
    assert await run_store_operation(quick_find(), "find", "starter_packs") == [{"rkey": "a"}, {"rkey": "b"}]


@pytest.mark.asyncio
async def test_timeout_raises_store_timeout():
    with pytest.raises(StoreTimeoutError) as exc_info:
        await run_store_operation(slow_count(), "count_documents", "starter_packs", {"deleted": True}, timeout=0.01)

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Database operation timed out"


@pytest.mark.asyncio
async def test_driver_error_becomes_store_error():
    with pytest.raises(StoreError) as exc_info:
        await run_store_operation(failing_find(), "find", "users")

    assert not isinstance(exc_info.value, StoreTimeoutError)
    assert "bad $regex" in exc_info.value.details


async def rejected_pattern():
    raise OperationFailure("Regular expression is invalid: missing terminating ] for character class", code=51091)


@pytest.mark.asyncio
async def test_pattern_rejected_by_server_is_invalid_query():
    with pytest.raises(InvalidQueryError) as exc_info:
        await run_store_operation(rejected_pattern(), "aggregate", "starter_packs")

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid search pattern"

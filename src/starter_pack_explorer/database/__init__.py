"""
# Database Package

The `starter_pack_explorer.database` package provides the persistence layer for the API.
It is built on top of **Motor** (async MongoDB driver).

## Design Patterns

**Singleton Pattern:**
The `db_manager` instance is created as a **module-level singleton**, so a single
connection pool is shared across every request.

**Lazy Initialization:**
The `DatabaseManager` is instantiated at import time, but the MongoDB connection is
established during application startup via `db_manager.connect()`.

## Usage

```python
from starter_pack_explorer.database import db_manager

await db_manager.connect()
packs = db_manager.packs
pack = await packs.find_one({"rkey": "3kabc"})
await db_manager.disconnect()
```
"""

from starter_pack_explorer.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]

"""
# Services Package

The search-and-denormalization query layer:

- **`tombstone`**: display-field fallback for soft-deleted documents
- **`query_builder`**: search text + sort + page → filter/sort/window
- **`relationship_joiner`**: batched pack ↔ user reference resolution
- **`pagination`**: response envelope
- **`stats_service`**: corpus-wide counters
- **`search_service`**, **`pack_service`**, **`user_service`**: request orchestration
- **`store`**: timeout-bounded store operations
- **`exceptions`**: errors surfaced to API clients
"""

"""
# Service Exceptions

Exception hierarchy raised by the query layer and rendered by the exception handlers in
`main.py` into `{"error": ..., "details": ...}` bodies.

```
StarterPackExplorerError (500)
├── InvalidQueryError (400)
├── NotFoundError (404)
│   ├── PackNotFoundError
│   └── UserNotFoundError
└── StoreError (500)
    └── StoreTimeoutError
```
"""

from typing import Optional


class StarterPackExplorerError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidQueryError(StarterPackExplorerError):
    """A request parameter is missing or malformed."""

    status_code = 400


class NotFoundError(StarterPackExplorerError):
    status_code = 404


class PackNotFoundError(NotFoundError):
    def __init__(self, rkey: str):
        super().__init__("Pack not found")
        self.rkey = rkey


class UserNotFoundError(NotFoundError):
    def __init__(self, did: str):
        super().__init__("User not found")
        self.did = did


class StoreError(StarterPackExplorerError):
    """The document store failed or refused an operation."""

    status_code = 500


class StoreTimeoutError(StoreError):
    """A store operation exceeded `DB_OPERATION_TIMEOUT_SECONDS`."""

"""
# Data Models Package

Pydantic models for packs, users and the API's response envelopes.
See `pack_models` for the full list.
"""

from .pack_models import *

__all__ = [
    "UserBase",
    "CreatorDetails",
    "HandleChange",
    "PackBasic",
    "PackSummary",
    "PackDetail",
    "PackLabel",
    "UserSummary",
    "UserDetail",
    "PaginatedResponse",
    "StatsResponse",
    "ErrorResponse",
]

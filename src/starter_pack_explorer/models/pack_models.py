"""
# Starter Pack Models

This module defines the **Pydantic models** for the two collections the API reads
(`starter_packs` and `users`) and for the response envelopes it returns.

## Domain Model Overview

1.  **Pack**: a named, creator-owned curated list of accounts, keyed by `rkey`.
2.  **User**: an account keyed by `did`, which may create packs and be a member of packs.

Membership is stored on both sides (`Pack.users` and `User.pack_ids`) and the two lists
are maintained independently, so they can disagree. Neither collection is ever physically
pruned: removed documents are flagged `deleted` and keep a `last_known_state` snapshot.

## Response Shapes

| Model | Used by |
|-------|---------|
| `PackSummary` | pack search results, user `member_packs` / `created_packs` |
| `PackDetail` | `GET /pack/{rkey}` |
| `UserSummary` | user search results |
| `UserDetail` | `GET /user/{did}` |
| `PackLabel` | `GET /packs?ids=` |
| `PaginatedResponse` | `GET /search` |
| `StatsResponse` | `GET /stats` |
| `ErrorResponse` | every error |

All models ignore unknown store fields so that new ingestion fields never leak into
responses unannounced.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Timestamp = Union[datetime, str]


class StoreModel(BaseModel):
    """Base for models populated straight from MongoDB documents."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# User Models
class UserBase(StoreModel):
    """Public identity fields of an account."""

    did: str = Field(..., description="Stable account identifier")
    handle: Optional[str] = Field(default=None, description="Current (mutable) handle")
    display_name: Optional[str] = Field(default=None, description="Display name")
    description: Optional[str] = Field(default=None, description="Profile description")
    followers_count: Optional[int] = Field(default=None, description="Number of followers")
    follows_count: Optional[int] = Field(default=None, description="Number of accounts followed")


class CreatorDetails(StoreModel):
    """The subset of a user attached to a pack as its creator."""

    did: str
    handle: Optional[str] = None
    display_name: Optional[str] = None
    followers_count: Optional[int] = None


class HandleChange(StoreModel):
    oldHandle: str
    timestamp: Optional[Timestamp] = None


# Pack Models
class PackBasic(StoreModel):
    """Minimal pack fields used for links and labels."""

    rkey: str = Field(..., description="Stable pack identifier")
    name: Optional[str] = Field(default=None, description="Pack name (tombstone-resolved)")
    creator: Optional[str] = Field(default=None, description="Creator handle (tombstone-resolved)")
    creator_did: Optional[str] = Field(default=None, description="Creator account identifier")
    user_count: int = Field(default=0, ge=0, description="Number of members")


class PackSummary(PackBasic):
    """Pack as it appears in search results and in a user's pack lists."""

    description: Optional[str] = None
    weekly_joins: Optional[int] = 0
    total_joins: Optional[int] = 0
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None
    deleted: Optional[bool] = False
    status: Optional[str] = None
    creator_details: Optional[CreatorDetails] = None


class PackDetail(PackSummary):
    """Full pack with its creator and resolved member list."""

    users: List[str] = Field(default_factory=list, description="Member dids in membership order")
    deleted_at: Optional[Timestamp] = None
    deletion_reason: Optional[str] = None
    status_updated_at: Optional[Timestamp] = None
    status_reason: Optional[str] = None
    last_updated: Optional[Timestamp] = None
    members: List[UserBase] = Field(default_factory=list)

    @field_validator("users", mode="before")
    @classmethod
    def membership_list(cls, v: Any) -> List[str]:
        """A missing or malformed `users` field reads as no members."""
        if not isinstance(v, list):
            return []
        return [did for did in v if isinstance(did, str)]


class PackLabel(BaseModel):
    name: Optional[str] = None
    creator: Optional[str] = None


class UserSummary(UserBase):
    """User as it appears in search results."""

    pack_ids_count: int = Field(default=0, ge=0, description="Number of packs the user is a member of")
    member_packs: List[PackSummary] = Field(default_factory=list)
    created_packs: List[PackSummary] = Field(default_factory=list)


class UserDetail(UserSummary):
    """Full user with member and created packs."""

    handle_history: List[HandleChange] = Field(default_factory=list)
    deleted: Optional[bool] = False
    deletion_reason: Optional[str] = None
    last_updated: Optional[Timestamp] = None


# Envelopes
class PaginatedResponse(BaseModel):
    """
    Uniform envelope for paginated search results.

    Field names follow the wire format consumed by the web client (`totalPages`,
    `itemsPerPage`).
    """

    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    totalPages: int = Field(default=0, ge=0)
    itemsPerPage: int = Field(default=10, ge=1)


class StatsResponse(BaseModel):
    total_packs: int = 0
    total_users: int = 0
    avg_pack_size: int = 0
    updated_at: datetime


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"error": "Search query is required", "details": None}}
    )

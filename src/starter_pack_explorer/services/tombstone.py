"""
# Tombstone Resolver

Packs and users are never physically removed from the store. A removed document is
flagged `deleted=True` and keeps a `last_known_state` snapshot of its display fields,
because the live fields may have been blanked or gone stale by the time it was flagged.

Every document that leaves the service (search results, detail lookups, labels and
joined relations) passes through this module, so a deleted pack shows the same name
whether it is viewed on its own or inside a user's `member_packs`.

## Resolution Rule

- `deleted` falsy → live fields unchanged.
- `deleted` true → `last_known_state[field]` when present and not `None`, else the live field.

## Usage

```python
pack = {"rkey": "a", "name": "", "deleted": True, "last_known_state": {"name": "Cats"}}
resolve_pack_display(pack)  # {"name": "Cats", "creator": None}
resolve_pack(pack)["name"]  # "Cats"
```
"""

from typing import Any, Dict, Iterable, Optional

PACK_DISPLAY_FIELDS = ("name", "creator")
USER_DISPLAY_FIELDS = ("handle", "display_name")


def is_deleted(entity: Optional[Dict[str, Any]]) -> bool:
    return bool(entity) and bool(entity.get("deleted"))


def resolve_display(entity: Optional[Dict[str, Any]], fields: Iterable[str]) -> Optional[Dict[str, Any]]:
    """
    Return the effective display values of `fields` for a possibly deleted document.

    Args:
        entity: A pack or user document as read from the store.
        fields: Display fields that have a `last_known_state` counterpart.

    Returns:
        A dict mapping each field to its effective value, or `None` for a `None` entity.
    """
    if entity is None:
        return None

    if not is_deleted(entity):
        return {field: entity.get(field) for field in fields}

    snapshot = entity.get("last_known_state") or {}
    resolved = {}
    for field in fields:
        value = snapshot.get(field)
        resolved[field] = value if value is not None else entity.get(field)
    return resolved


def resolve_pack_display(pack: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Effective `{name, creator}` of a pack."""
    return resolve_display(pack, PACK_DISPLAY_FIELDS)


def resolve_user_display(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Effective `{handle, display_name}` of a user."""
    return resolve_display(user, USER_DISPLAY_FIELDS)


def _resolve(entity: Optional[Dict[str, Any]], fields: Iterable[str]) -> Optional[Dict[str, Any]]:
    if entity is None:
        return None
    resolved = dict(entity)
    resolved.update(resolve_display(entity, fields))
    resolved.pop("last_known_state", None)
    return resolved


def resolve_pack(pack: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of `pack` with display fields resolved and the snapshot stripped."""
    return _resolve(pack, PACK_DISPLAY_FIELDS)


def resolve_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of `user` with display fields resolved and the snapshot stripped."""
    return _resolve(user, USER_DISPLAY_FIELDS)

"""
# Starter Pack Explorer

Read-only search and browsing API over a MongoDB corpus of Bluesky starter packs and
their users.

## Module Attributes

Attributes:
    __version__ (str): Package version, mirrored in `pyproject.toml`
"""

__version__ = "1.0.0"

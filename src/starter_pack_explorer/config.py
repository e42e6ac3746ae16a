"""
# Configuration Management Module

This module provides the configuration system for the Starter Pack Explorer API.
Built on **Pydantic Settings**, it loads values from environment variables and an optional
config file, validates them at startup, and exposes a single global `settings` instance.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│         Configuration Loading Hierarchy                     │
│  (Higher layers override lower layers)                      │
├─────────────────────────────────────────────────────────────┤
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. STARTER_PACK_EXPLORER_CONFIG_PATH                       │
│     - Custom config file path from env var                  │
├─────────────────────────────────────────────────────────────┤
│  3. .spx File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  4. .env File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

If no configuration file is found, the application runs in **environment-only mode**.

## Configuration Groups

| Group | Purpose |
|-------|---------|
| **Server** | Host, port, debug mode, log level, API prefix, CORS |
| **Database (MongoDB)** | Connection URL, database and collection names, timeouts, pool sizes |
| **Query Layer** | Operation timeout, page size, query validation, soft-delete policy |
| **Stats** | Strictness of the active pack/user definitions |

## Usage

```python
from starter_pack_explorer.config import settings

page_size = settings.SEARCH_PAGE_SIZE
timeout = settings.DB_OPERATION_TIMEOUT_SECONDS
```

## Module Attributes

Attributes:
    CONFIG_PATH (Optional[str]): The config file that was loaded, or `None`.
    settings (Settings): The global settings instance.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
SPX_FILENAME: str = ".spx"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "STARTER_PACK_EXPLORER_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `STARTER_PACK_EXPLORER_CONFIG_PATH` (if set and file exists).
    2.  **SPX Config**: `.spx` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, triggering environment-variable-only mode.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    spx_path: Path = PROJECT_ROOT / SPX_FILENAME
    if spx_path.exists():
        return str(spx_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, logging, CORS.
    *   **Database**: MongoDB connection details and collection names.
    *   **Query Layer**: Timeouts, paging and search policy.
    *   **Stats**: Which packs and users count as active.

    **Validation:**
    The MongoDB URL must be present, numeric limits must be positive and the
    per-operation timeout must stay within 1-300 seconds.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"
    CORS_ORIGINS: str = "http://localhost:3000"

    # MongoDB configuration
    MONGODB_URL: str = ""  # Must be set in .spx or environment
    MONGODB_DATABASE: str = "starterpacks"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_MAX_POOL_SIZE: int = 50
    MONGODB_MIN_POOL_SIZE: int = 5

    # Authentication (optional)
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Collections
    PACKS_COLLECTION: str = "starter_packs"
    USERS_COLLECTION: str = "users"
    CREATE_INDEXES_ON_STARTUP: bool = True

    # Query layer
    DB_OPERATION_TIMEOUT_SECONDS: int = 10
    SEARCH_PAGE_SIZE: int = 10
    SEARCH_MIN_QUERY_LENGTH: int = 2
    SEARCH_ALLOW_REGEX: bool = False  # Treat q as a raw regex instead of literal text
    SEARCH_INCLUDE_NO_REMAINING_PACKS: bool = True  # Keep users deleted with reason "no_remaining_packs"
    PACK_LABELS_MAX_IDS: int = 100

    # Stats
    STATS_REQUIRE_COMPLETED_STATUS: bool = False
    STATS_REQUIRE_HANDLE: bool = False

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """
        Validates that the MongoDB URL is not empty.

        Raises:
            ValueError: If the URL is empty or whitespace.
        """
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .spx and not empty!")
        return v

    @field_validator(
        "SEARCH_PAGE_SIZE",
        "SEARCH_MIN_QUERY_LENGTH",
        "PACK_LABELS_MAX_IDS",
        "MONGODB_MAX_POOL_SIZE",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """Validates that numeric settings are positive integers."""
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("DB_OPERATION_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def validate_timeout_values(cls, v: Any, info: Any) -> int:
        """Validates that timeout values are within a reasonable range (1-300 seconds)."""
        timeout = int(v)
        if timeout < 1 or timeout > 300:
            raise ValueError(f"{info.field_name} must be between 1 and 300 seconds")
        return timeout

    @property
    def is_production(self) -> bool:
        """Production mode is defined as `DEBUG=False`."""
        return not self.DEBUG

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse `CORS_ORIGINS` (comma-separated) into a list, dropping blanks."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings: Settings = Settings()

"""
# Configuration Management Module

This module provides the configuration system for the Second Brain API.
Built on **Pydantic Settings**, it loads values from a configuration file and the
process environment, validates them at import time, and keeps secrets wrapped in
`SecretStr` so they never end up in logs.

## Configuration Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│  1. Environment Variables (HIGHEST PRIORITY)                │
├─────────────────────────────────────────────────────────────┤
│  2. SECOND_BRAIN_CONFIG_PATH (custom config file path)      │
├─────────────────────────────────────────────────────────────┤
│  3. .sbd File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  4. .env File (Project Root)                                │
├─────────────────────────────────────────────────────────────┤
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

If no configuration file is found the application runs in environment-only mode.

## Configuration Groups

| Group | Settings | Purpose |
|-------|----------|---------|
| **Server** | `HOST`, `PORT`, `DEBUG`, `API_PREFIX` | Bind address and versioned base path |
| **JWT Authentication** | `SECRET_KEY`, `ALGORITHM`, `ACCESS_TOKEN_EXPIRE_MINUTES` | Bearer token signing |
| **Database (MongoDB)** | `MONGODB_*`, `STORAGE_BACKEND` | Persistence |
| **Google Sign-In** | `GOOGLE_CLIENT_ID`, `GOOGLE_TOKENINFO_URL` | Federated login |
| **Content** | `METADATA_FETCH_TIMEOUT`, `METADATA_MAX_BYTES`, `SHARED_BRAIN_ITEM_LIMIT`, page sizes | Item behaviour |
| **CORS / Logging** | `CORS_ORIGINS`, `LOG_LEVEL` | Ambient concerns |

## Example `.sbd` File

```bash
MONGODB_URL=mongodb://localhost:27017
MONGODB_DATABASE=second_brain
SECRET_KEY=dev-secret-key-for-local-testing-only-12345
GOOGLE_CLIENT_ID=1234567890-abc.apps.googleusercontent.com
```

## Module Attributes

Attributes:
    CONFIG_PATH (Optional[str]): The configuration file that was loaded, if any.
    settings (Settings): The global, validated settings instance.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
SBD_FILENAME: str = ".sbd"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "SECOND_BRAIN_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

STORAGE_BACKENDS = ("mongodb", "memory")


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    1.  **Environment Variable**: `SECOND_BRAIN_CONFIG_PATH` (if set and file exists).
    2.  **SBD Config**: `.sbd` file in the project root directory.
    3.  **Dotenv Config**: `.env` file in the project root directory.
    4.  **Fallback**: `None`, which triggers environment-variable-only mode.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    sbd_path: Path = PROJECT_ROOT / SBD_FILENAME
    if sbd_path.exists():
        return str(sbd_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Validation:**
    `SECRET_KEY` must be provided and must not look like a placeholder, the MongoDB URL
    must not be blank when the MongoDB backend is selected, and numeric limits must be
    positive.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"

    # JWT configuration
    SECRET_KEY: SecretStr = SecretStr("")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # MongoDB configuration
    STORAGE_BACKEND: str = "mongodb"
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "second_brain"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Google sign-in
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"
    GOOGLE_VERIFY_TIMEOUT: float = 10.0

    # Content behaviour
    METADATA_FETCH_TIMEOUT: float = 5.0
    METADATA_USER_AGENT: str = "SecondBrainBot/1.0 (+metadata preview)"
    METADATA_MAX_BYTES: int = 1048576
    SHARED_BRAIN_ITEM_LIMIT: int = 50
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    DEFAULT_BRAIN_NAME: str = "My Brain"
    DEFAULT_BRAIN_DESCRIPTION: str = "Your personal knowledge base"

    # CORS / logging
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def no_hardcoded_secrets(cls, v: Any, info: Any) -> Any:
        """
        Validates that the signing secret is set and is not a placeholder.

        Raises:
            ValueError: If the value is empty or contains "change"/"0000".
        """
        if not v or "change" in str(v).lower() or "0000" in str(v) or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .sbd and not hardcoded!")
        return v

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .sbd and not empty!")
        return v

    @field_validator("STORAGE_BACKEND", mode="before")
    @classmethod
    def validate_storage_backend(cls, v: Any) -> str:
        value = str(v).strip().lower()
        if value not in STORAGE_BACKENDS:
            raise ValueError(f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}")
        return value

    @field_validator(
        "ACCESS_TOKEN_EXPIRE_MINUTES",
        "SHARED_BRAIN_ITEM_LIMIT",
        "DEFAULT_PAGE_SIZE",
        "MAX_PAGE_SIZE",
        "METADATA_MAX_BYTES",
        mode="before",
    )
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @field_validator("METADATA_FETCH_TIMEOUT", "GOOGLE_VERIFY_TIMEOUT", mode="before")
    @classmethod
    def validate_timeout_values(cls, v: Any, info: Any) -> float:
        """Timeouts must stay within 0-300 seconds (exclusive of zero)."""
        value = float(v)
        if value <= 0 or value > 300:
            raise ValueError(f"{info.field_name} must be between 0 and 300 seconds")
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings: Settings = Settings()

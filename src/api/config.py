import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from src.api.exceptions import ConfigurationError


# Load environment variables
load_dotenv()

# Constants and configuration
DEFAULT_DB_PATH = os.path.join(os.getcwd(), "post_generator.db")
STORAGE_BACKENDS = ("memory", "sqlite")
AUTH_MODES = ("header", "firebase")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings read from the environment (and an optional .env file)."""

    gemini_api_key: str = ""
    storage_backend: str = "memory"
    sqlite_db: str = DEFAULT_DB_PATH
    seed_default_user: bool = True
    auth_mode: str = "header"
    enforce_delete_ownership: bool = False
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment and validate them."""
        settings = cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            storage_backend=os.getenv("STORAGE_BACKEND", "memory").strip().lower(),
            sqlite_db=os.getenv("SQLITE_DB", DEFAULT_DB_PATH),
            seed_default_user=_env_bool("SEED_DEFAULT_USER", True),
            auth_mode=os.getenv("AUTH_MODE", "header").strip().lower(),
            enforce_delete_ownership=_env_bool("ENFORCE_DELETE_OWNERSHIP", False),
            cors_allow_origins=[o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, got '{self.storage_backend}'"
            )
        if self.auth_mode not in AUTH_MODES:
            raise ConfigurationError(
                f"AUTH_MODE must be one of {', '.join(AUTH_MODES)}, got '{self.auth_mode}'"
            )

"""
Configuration for the Bookstore API.

Settings are read from environment variables (a local ``.env`` file is
loaded first) and cached for the lifetime of the process.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


STORAGE_BACKENDS = ("memory", "json", "sql")


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Tokens
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7

    # Password hashing cost factor
    bcrypt_rounds: int = 10

    # Storage
    storage_backend: str = "memory"
    database_url: str = "sqlite:///./bookstore.db"
    database_echo: bool = False
    data_file: str = "./data/db.json"

    # Catalog
    max_page_limit: int = 100

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            token_expire_days=int(os.getenv("TOKEN_EXPIRE_DAYS", cls.token_expire_days)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", cls.bcrypt_rounds)),
            storage_backend=os.getenv("STORAGE_BACKEND", cls.storage_backend).lower(),
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            data_file=os.getenv("DATA_FILE", cls.data_file),
            max_page_limit=int(os.getenv("MAX_PAGE_LIMIT", cls.max_page_limit)),
            environment=os.getenv("BOOKSTORE_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )

    def validate(self) -> "Settings":
        """
        Check settings that the application cannot start without.

        Raises:
            ConfigurationError: If the token secret is missing or a value
                is out of range.
        """
        if not self.jwt_secret:
            raise ConfigurationError("JWT_SECRET must be set")
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, "
                f"got '{self.storage_backend}'"
            )
        if self.token_expire_days < 1:
            raise ConfigurationError("TOKEN_EXPIRE_DAYS must be at least 1")
        # bcrypt accepts cost factors 4..31
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigurationError("BCRYPT_ROUNDS must be between 4 and 31")
        if self.max_page_limit < 1:
            raise ConfigurationError("MAX_PAGE_LIMIT must be at least 1")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()

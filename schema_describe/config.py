"""Configuration management for schema-describe."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.schema-describe/.env
    3. Package directory (where this file is located)
    """
    if os.path.exists(".env"):
        return ".env"

    user_env = Path.home() / ".schema-describe" / ".env"
    if user_env.exists():
        return str(user_env)

    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


class Settings(BaseSettings):
    """Application settings loaded from SCHEMA_DESCRIBE_* environment variables."""

    default_dialect: str = Field(
        default="sqlite",
        description="Dialect assumed when none is given"
    )
    concurrent_catalog_queries: bool = Field(
        default=True,
        description="Run a table's catalog queries together rather than one by one"
    )

    # Constraint shadow store
    persist_constraints: bool = Field(
        default=False,
        description="Keep shadow constraints in a SQLite file instead of memory"
    )
    constraint_store_path: Optional[str] = Field(
        default=None,
        description="Path to the constraint store file (default: ~/.schema-describe/constraints.db)"
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI"
    )

    class Config:
        env_prefix = "SCHEMA_DESCRIBE_"
        env_file = _find_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()

"""
Configuration module for Community Schema.

This module handles loading configuration from environment variables and provides
a settings object that can be used throughout the package.
"""

from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file if it exists
load_dotenv()


def split_members(raw: str) -> Tuple[str, ...]:
    """
    Split a comma-separated list of enum members.

    Args:
        raw: Comma-separated member names, e.g. "USER,ADMIN"

    Returns:
        Tuple of stripped, non-empty member names in declaration order
    """
    seen = []
    for member in raw.split(","):
        member = member.strip()
        if member and member not in seen:
            seen.append(member)
    return tuple(seen)


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"

    # Schema Configuration
    schema_validation_enabled: bool = True
    schema_version: str = "1.0.0"
    schema_output_dir: str = "ent/schema"

    # Enum members; empty means the enum is unresolved
    user_roles: str = ""
    subscription_plans: str = ""

    @property
    def role_values(self) -> Tuple[str, ...]:
        return split_members(self.user_roles)

    @property
    def plan_values(self) -> Tuple[str, ...]:
        return split_members(self.subscription_plans)


@lru_cache()
def get_settings() -> Settings:
    """
    Get package settings.

    Returns:
        Settings object with configuration values
    """
    return Settings()

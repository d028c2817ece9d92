"""jobj configuration management."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="JOBJ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Repair engine policy
    # Return {} / [] instead of failing when nothing else converges
    empty_structure_fallback: bool = True
    # Rebuild unbalanced objects from the "key": value pairs we can still find
    degraded_extraction: bool = True

    # Safe decoder
    strip_newlines: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

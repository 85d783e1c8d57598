from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Package catalog overrides, merged per tier on top of the built-in tables.
    # env: PACKAGE_FEATURES_OVERRIDES='{"standard": {"dataExport": false}}'
    package_features_overrides: dict[str, dict[str, bool]] = {}
    # env: PACKAGE_LIMITS_OVERRIDES='{"free": {"maxForms": 5}}'
    package_limits_overrides: dict[str, dict[str, int]] = {}


@lru_cache
def get_settings() -> Settings:
    return Settings()

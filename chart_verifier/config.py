"""Настройки CLI (переменные окружения CHART_VERIFIER_* и .env)."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from chart_verifier.core.profiles import VENDOR_TYPE_CONFIG_NAME, VERSION_CONFIG_NAME
from chart_verifier.reports.summary import ANNOTATIONS_PREFIX_CONFIG_NAME


class Settings(BaseSettings):
    """Настройки chart-verifier."""

    model_config = SettingsConfigDict(env_prefix="CHART_VERIFIER_", env_file=".env", extra="ignore")

    # Output
    output_format: str = "yaml"
    summary_format: str = "json"

    # Run
    timeout_seconds: int = 1800  # 30 минут, как у helm install
    parallel_checks: bool = False

    # Profile / summary overrides
    profile_vendor_type: Optional[str] = None
    profile_version: Optional[str] = None
    annotations_prefix: Optional[str] = None

    log_level: str = "INFO"

    def profile_values(self) -> dict:
        """Значения профиля из окружения в формате ключей конфигурации."""
        values = {}
        if self.profile_vendor_type:
            values[VENDOR_TYPE_CONFIG_NAME] = self.profile_vendor_type
        if self.profile_version:
            values[VERSION_CONFIG_NAME] = self.profile_version
        if self.annotations_prefix:
            values[ANNOTATIONS_PREFIX_CONFIG_NAME] = self.annotations_prefix
        return values


@lru_cache
def get_settings() -> Settings:
    return Settings()

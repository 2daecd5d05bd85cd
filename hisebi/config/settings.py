"""
Configuration Management for Hisebi

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The two application variants (Hisebi and Dor-Dam) differ only in
values derived from `AppSettings.variant`.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppVariant(str, Enum):
    """Application variant."""
    HISEBI = "hisebi"
    DORDAM = "dordam"


class StorageBackend(str, Enum):
    """Where the ledger snapshot is kept."""
    FILE = "file"
    MEMORY = "memory"


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (insights fall back to standard tips without it)"
    )
    model_name: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    retry_attempts: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts per insight request before falling back"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class StorageSettings(BaseSettings):
    """Local persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="HISEBI_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: StorageBackend = Field(
        default=StorageBackend.FILE,
        description="Snapshot storage backend"
    )
    data_dir: Path = Field(
        default=Path(".hisebi"),
        description="Directory holding the snapshot and audit files"
    )
    snapshot_filename: str = Field(
        default="storage.json",
        description="Key-value file holding one snapshot slot per variant"
    )
    audit_log_enabled: bool = Field(
        default=True,
        description="Append audit events to a JSON-lines file"
    )
    audit_filename: str = Field(
        default="audit.jsonl",
        description="Audit log file name"
    )

    @field_validator("snapshot_filename", "audit_filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """File names must not contain directories."""
        if Path(v).name != v:
            raise ValueError(f"Expected a bare file name, got: {v}")
        return v

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / self.snapshot_filename

    @property
    def audit_path(self) -> Path:
        return self.data_dir / self.audit_filename


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    variant: AppVariant = Field(
        default=AppVariant.HISEBI,
        description="Which application variant to run"
    )
    currency_symbol: str = Field(
        default="৳",
        description="Currency symbol shown next to amounts (BDT)"
    )

    # Profile defaults
    default_profile_name: str = Field(
        default="Guest User",
        description="Display name used before the user sets one"
    )
    default_monthly_budget: float = Field(
        default=15000.0,
        ge=0.0,
        description="Monthly budget used before the user sets one"
    )

    # Derived view windows
    trend_window: int = Field(
        default=7,
        ge=1,
        le=60,
        description="Number of transactions in the trend chart"
    )
    insight_transaction_window: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of recent transactions sent to the insight service"
    )
    activity_limit_override: Optional[int] = Field(
        default=None,
        ge=1,
        le=100,
        description="Overrides the variant's recent activity window"
    )

    @property
    def storage_key(self) -> str:
        """Key-value slot holding this variant's snapshot."""
        if self.variant == AppVariant.DORDAM:
            return "dordam_v3_persistent"
        return "hisebi_data"

    @property
    def recent_activity_limit(self) -> int:
        if self.activity_limit_override is not None:
            return self.activity_limit_override
        return 10 if self.variant == AppVariant.DORDAM else 5

    @property
    def shopping_enabled(self) -> bool:
        return self.variant == AppVariant.DORDAM

    @property
    def app_title(self) -> str:
        return "Dor-Dam" if self.variant == AppVariant.DORDAM else "Hisebi"

    @property
    def export_filename(self) -> str:
        return f"{self.variant.value}_transactions.csv"


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    `<name>_error` entry for each failure.
    """
    results = {}

    settings = get_settings()

    try:
        gemini = settings.gemini
        results["gemini"] = gemini.is_configured
        if not gemini.is_configured:
            results["gemini_error"] = "GEMINI_API_KEY not set - using standard tips"
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results

"""
Configuration Management for Finora

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable (where data lives, how passwords are hashed, quiz rules)
is declared in one place and validated when first loaded.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Key-value store configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="FINORA_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    backend: Literal["file", "memory"] = Field(
        default="file",
        description="Store backend: JSON files on disk or process memory"
    )
    data_dir: str = Field(
        default=".finora",
        description="Directory holding one JSON file per collection"
    )
    key_prefix: str = Field(
        default="finora_",
        description="Prefix applied to every collection key"
    )


class SecuritySettings(BaseSettings):
    """Credential handling configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="FINORA_SECURITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt cost factor"
    )
    min_password_length: int = Field(
        default=6,
        ge=1,
        description="Shortest password accepted at registration or change"
    )
    case_insensitive_emails: bool = Field(
        default=False,
        description="Match emails ignoring case on register and login"
    )


class LearningSettings(BaseSettings):
    """Learning hub rules."""
    
    model_config = SettingsConfigDict(
        env_prefix="FINORA_LEARNING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    pass_threshold_percent: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Minimum quiz score (percent) that completes a lesson"
    )
    points_per_lesson: int = Field(
        default=50,
        ge=0,
        description="XP awarded the first time a lesson is completed"
    )


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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )
    
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency assigned to new accounts"
    )
    budget_warning_percent: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Budget usage (percent) at which users are warned"
    )
    
    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()
    
    @field_validator("default_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


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
    
    @property
    def store(self) -> StoreSettings:
        return StoreSettings()
    
    @property
    def security(self) -> SecuritySettings:
        return SecuritySettings()
    
    @property
    def learning(self) -> LearningSettings:
        return LearningSettings()
    
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
    
    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for every group that failed to load.
    """
    results = {}
    settings = get_settings()
    
    for name in ("store", "security", "learning", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results

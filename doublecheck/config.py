"""Configuration loading for the doublecheck linter.

This module provides centralized configuration management:
- Load settings from DOUBLECHECK_* environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Accept command-line overrides on top of the environment
"""

import re
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from doublecheck.core.naming import CONVENTIONS


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv. List values are given as JSON
    (e.g. DOUBLECHECK_PATHS='["tests", "docs"]').
    """

    model_config = SettingsConfigDict(
        env_prefix="DOUBLECHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # What to check
    paths: list[str] = Field(
        default_factory=lambda: ["."],
        description="Files and directories to check",
    )
    include_globs: list[str] = Field(
        default_factory=list,
        description="Filename patterns to include (empty = every supported file)",
    )
    exclude_dirs: list[str] = Field(
        default_factory=lambda: [
            ".git", ".venv", "venv", "__pycache__", "node_modules", "build", "dist",
        ],
        description="Directory names never descended into",
    )

    # Naming rules
    naming_conventions: list[str] = Field(
        default_factory=lambda: [
            "unit_scenario_expected", "given_when_then", "when_then", "should",
        ],
        description="Accepted test naming conventions",
    )
    custom_pattern: str = Field(
        default="",
        description="Regex every test name must fully match (replaces conventions)",
    )
    min_words: int = Field(
        default=2,
        description="Minimum meaningful words in a test name",
    )

    # Gate
    fail_on: Literal["error", "warning", "info", "never"] = Field(
        default="error",
        description="Lowest severity that fails the run",
    )
    min_severity: Literal["error", "warning", "info"] = Field(
        default="info",
        description="Lowest severity included in reports",
    )

    # Reporting
    report_format: Literal["stdout", "markdown", "json"] = Field(
        default="stdout",
        description="Report backend type",
    )
    report_dir: str = Field(
        default="./doublecheck-reports",
        description="Output directory for markdown and JSON reports",
    )

    # Baseline
    baseline_backend: Literal["sqlite", "none"] = Field(
        default="sqlite",
        description="Baseline store backend type",
    )
    baseline_path: str = Field(
        default="./.doublecheck/baseline.db",
        description="SQLite baseline file path",
    )
    prune_fixed: bool = Field(
        default=True,
        description="Mark baselined findings that no longer occur as fixed",
    )

    # Watch mode
    watch_interval_seconds: float = Field(
        default=2.0,
        description="Seconds between modification-time polls in watch mode",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Run mode
    run_mode: Literal["check", "cli", "watch"] = Field(
        default="check",
        description="Run mode",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose output",
    )

    @field_validator("naming_conventions")
    @classmethod
    def validate_conventions(cls, v: list[str]) -> list[str]:
        """Ensure every convention is known."""
        if not v:
            raise ValueError("naming_conventions must not be empty")
        unknown = [name for name in v if name not in CONVENTIONS]
        if unknown:
            raise ValueError(
                f"unknown naming convention(s) {unknown}; choose from {sorted(CONVENTIONS)}"
            )
        return v

    @field_validator("custom_pattern")
    @classmethod
    def validate_custom_pattern(cls, v: str) -> str:
        """Ensure the custom pattern compiles."""
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"custom_pattern is not a valid regex: {e}") from e
        return v

    @field_validator("min_words")
    @classmethod
    def validate_min_words(cls, v: int) -> int:
        """Ensure at least one word is required."""
        if v < 1:
            raise ValueError("min_words must be at least 1")
        return v

    @field_validator("watch_interval_seconds")
    @classmethod
    def validate_watch_interval(cls, v: float) -> float:
        """Ensure watch interval is positive."""
        if v <= 0:
            raise ValueError("watch_interval_seconds must be positive")
        return v

    @field_validator("paths")
    @classmethod
    def validate_paths(cls, v: list[str]) -> list[str]:
        """Ensure there is something to check."""
        if not v:
            raise ValueError("paths must not be empty")
        return v


def load_settings(env_file: str | None = None, **overrides: Any) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.
        **overrides: Values that take precedence over the environment
                 (command-line flags). None values are ignored.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    if env_file:
        return Settings(_env_file=env_file, **values)  # type: ignore[call-arg]
    return Settings(**values)


__all__ = ["Settings", "load_settings"]

"""
Logging configuration for aitherlog.

This module declares every logging setting once, with its type, default and
the environment variables it may be loaded from. Settings are a frozen
Pydantic settings model: an instance is never mutated, a configuration
change produces a new instance, so any settings object handed out is
already a snapshot.

Classes:
    LogFormat: File encodings (structured, simple, json)
    LoggingSettings: All logging settings with environment support

Functions:
    resolve_settings(): Build settings from explicit values and a mapping
    default_log_path(): Default live log file location

Environment Variables:
    Each setting is read from a new-style ``AITHERZERO_*`` variable and falls
    back to the legacy ``LAB_*`` variable with the same suffix:

    - AITHERZERO_LOG_LEVEL / LAB_LOG_LEVEL: File sink threshold
    - AITHERZERO_CONSOLE_LEVEL / LAB_CONSOLE_LEVEL: Console sink threshold
    - AITHERZERO_LOG_PATH / LAB_LOG_PATH: Live log file path
    - AITHERZERO_MAX_LOG_SIZE_MB / LAB_MAX_LOG_SIZE_MB: Rotation size limit
    - AITHERZERO_MAX_LOG_FILES / LAB_MAX_LOG_FILES: Rotated files retained
    - AITHERZERO_ENABLE_TRACE / LAB_ENABLE_TRACE: TRACE convenience writes
    - AITHERZERO_ENABLE_PERFORMANCE / LAB_ENABLE_PERFORMANCE: Named timers
    - AITHERZERO_LOG_FORMAT / LAB_LOG_FORMAT: structured, simple or json
    - AITHERZERO_ENABLE_CALLSTACK / LAB_ENABLE_CALLSTACK: Call-stack capture
    - AITHERZERO_LOG_TO_FILE / LAB_LOG_TO_FILE: File sink toggle
    - AITHERZERO_LOG_TO_CONSOLE / LAB_LOG_TO_CONSOLE: Console sink toggle

Resolution order per setting:
    explicit argument > new-style variable > legacy variable > default

Example:
    >>> from aitherlog.core.config.settings import resolve_settings
    >>> settings = resolve_settings({"LAB_LOG_LEVEL": "Debug"}, max_files=3)
    >>> settings.log_level.name, settings.max_files
    ('DEBUG', 3)
"""

import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import AliasChoices, Field, ValidationError, field_serializer, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from aitherlog.core.exceptions.custom_exceptions import ConfigurationError
from aitherlog.core.logging.levels import LogLevel, parse_level

NEW_ENV_PREFIX = "AITHERZERO_"
LEGACY_ENV_PREFIX = "LAB_"

# Field name -> environment variable suffix
ENV_SUFFIXES: Dict[str, str] = {
    "log_level": "LOG_LEVEL",
    "console_level": "CONSOLE_LEVEL",
    "log_file_path": "LOG_PATH",
    "max_file_size_mb": "MAX_LOG_SIZE_MB",
    "max_files": "MAX_LOG_FILES",
    "enable_trace": "ENABLE_TRACE",
    "enable_performance": "ENABLE_PERFORMANCE",
    "log_format": "LOG_FORMAT",
    "enable_call_stack": "ENABLE_CALLSTACK",
    "log_to_file": "LOG_TO_FILE",
    "log_to_console": "LOG_TO_CONSOLE",
}


def env_names(field_name: str) -> Tuple[str, str]:
    """Return the (new-style, legacy) variable names for a setting."""
    suffix = ENV_SUFFIXES[field_name]
    return f"{NEW_ENV_PREFIX}{suffix}", f"{LEGACY_ENV_PREFIX}{suffix}"


def _env_alias(field_name: str) -> AliasChoices:
    return AliasChoices(*env_names(field_name), field_name)


def default_log_path() -> Path:
    """Default live log file: ``<tmp>/aitherzero/aitherzero.log``."""
    return Path(tempfile.gettempdir()) / "aitherzero" / "aitherzero.log"


class LogFormat(str, Enum):
    """File sink encodings."""

    STRUCTURED = "structured"
    SIMPLE = "simple"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """
    Logging settings with environment variable support.

    Attributes:
        log_level: File sink threshold
        console_level: Console sink threshold
        log_file_path: Live log file; rotated siblings are ``<path>.1`` ...
        max_file_size_mb: Size that triggers rotation before the next append
        max_files: Rotated files retained (``<path>.1`` .. ``<path>.N``)
        log_format: Encoding of file entries
        enable_call_stack: Attach the caller chain to ERROR/DEBUG/TRACE entries
        enable_trace: Allow ``write_trace`` convenience entries
        enable_performance: Allow named performance timers
        log_to_file: File sink toggle
        log_to_console: Console sink toggle
    """

    log_level: LogLevel = Field(LogLevel.INFO, validation_alias=_env_alias("log_level"))
    console_level: LogLevel = Field(
        LogLevel.INFO, validation_alias=_env_alias("console_level")
    )
    log_file_path: Path = Field(
        default_factory=default_log_path, validation_alias=_env_alias("log_file_path")
    )
    max_file_size_mb: float = Field(
        50.0, ge=0, validation_alias=_env_alias("max_file_size_mb")
    )
    max_files: int = Field(10, ge=0, validation_alias=_env_alias("max_files"))
    log_format: LogFormat = Field(
        LogFormat.STRUCTURED, validation_alias=_env_alias("log_format")
    )
    enable_call_stack: bool = Field(
        True, validation_alias=_env_alias("enable_call_stack")
    )
    enable_trace: bool = Field(False, validation_alias=_env_alias("enable_trace"))
    enable_performance: bool = Field(
        True, validation_alias=_env_alias("enable_performance")
    )
    log_to_file: bool = Field(True, validation_alias=_env_alias("log_to_file"))
    log_to_console: bool = Field(True, validation_alias=_env_alias("log_to_console"))

    model_config = SettingsConfigDict(
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("log_level", "console_level", mode="before")
    @classmethod
    def validate_level(cls, v: Any) -> LogLevel:
        """Accept level names in any case, numbers, and the WARNING alias."""
        try:
            return parse_level(v)
        except (KeyError, ValueError) as e:
            raise ValueError(str(e)) from e

    @field_validator("log_format", mode="before")
    @classmethod
    def validate_log_format(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("log_file_path", mode="before")
    @classmethod
    def validate_log_file_path(cls, v: Any) -> Any:
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("log file path must not be empty")
            return Path(os.path.expandvars(os.path.expanduser(v.strip())))
        return v

    @field_serializer("log_level", "console_level")
    def serialize_level(self, v: LogLevel) -> str:
        return v.name

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


def resolve_settings(
    environ: Optional[Mapping[str, str]] = None, **explicit: Any
) -> LoggingSettings:
    """
    Resolve settings from explicit values layered over an environment.

    Explicit values that are ``None`` are treated as "not supplied". Every
    supplied value is written under the new-style variable name, so it wins
    over both variables already present in ``environ``.

    Args:
        environ: Variable mapping to read, defaults to ``os.environ``
        **explicit: Setting overrides keyed by field name

    Returns:
        LoggingSettings: Validated settings

    Raises:
        ConfigurationError: If a key is unknown or a value fails validation
    """
    source: Dict[str, Any] = dict(os.environ if environ is None else environ)

    for name, value in explicit.items():
        if name not in ENV_SUFFIXES:
            raise ConfigurationError(
                f"Unknown logging setting '{name}'",
                error_code="CONFIG_UNKNOWN_SETTING",
                details={"setting": name},
            )
        if value is not None:
            source[env_names(name)[0]] = value

    try:
        return LoggingSettings.model_validate(source)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid logging configuration",
            error_code="CONFIG_VALIDATION_ERROR",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e

"""
Process-wide configuration handle.

A ConfigurationStore owns the current LoggingSettings and the
``initialized`` flag. The engine creates one store and passes it to every
subcomponent through its constructor; nothing reads configuration from a
module global.
"""

import threading
from typing import Any, Dict, Optional

from pydantic import ValidationError

from aitherlog.core.config.settings import ENV_SUFFIXES, LoggingSettings
from aitherlog.core.exceptions.custom_exceptions import ConfigurationError


class ConfigurationStore:
    """Lock-guarded holder of the active settings."""

    def __init__(self, settings: Optional[LoggingSettings] = None):
        self._lock = threading.RLock()
        self._settings = settings if settings is not None else LoggingSettings()
        self._initialized = False

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def initialized(self) -> bool:
        return self._initialized

    def mark_initialized(self, value: bool = True) -> None:
        with self._lock:
            self._initialized = value

    def get(self) -> LoggingSettings:
        """Return the active settings. The object is frozen, so it is a snapshot."""
        with self._lock:
            return self._settings

    def replace(self, settings: LoggingSettings) -> None:
        with self._lock:
            self._settings = settings

    def update(self, **partial: Any) -> LoggingSettings:
        """
        Apply the supplied fields on top of the active settings.

        Fields passed as ``None`` are left untouched.

        Raises:
            ConfigurationError: If a field is unknown or the result is invalid
        """
        unknown = [name for name in partial if name not in ENV_SUFFIXES]
        if unknown:
            raise ConfigurationError(
                f"Unknown logging setting(s): {', '.join(sorted(unknown))}",
                error_code="CONFIG_UNKNOWN_SETTING",
                details={"settings": sorted(unknown)},
            )

        with self._lock:
            merged: Dict[str, Any] = self._settings.model_dump()
            merged.update({k: v for k, v in partial.items() if v is not None})
            try:
                self._settings = LoggingSettings.model_validate(merged)
            except ValidationError as e:
                raise ConfigurationError(
                    "Invalid logging configuration update",
                    error_code="CONFIG_VALIDATION_ERROR",
                    details={"errors": e.errors(include_url=False, include_input=False)},
                ) from e
            return self._settings

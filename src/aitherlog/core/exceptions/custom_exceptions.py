"""
Custom exception hierarchy for aitherlog error handling.

The logging engine is infrastructure that every other toolkit component
depends on, so almost none of these exceptions escape the public ``write``
path. They exist to give internal failures a consistent shape (message,
machine-readable code, contextual details) before they are rendered as
``[LOG ERROR]`` console lines, and to give ``initialize`` a typed failure
that callers may treat as fatal.

Exception Hierarchy:
    AitherLogError (base)
    ├── ConfigurationError: Invalid settings or an unusable log path
    ├── LogWriteError: File append failed (I/O error, permissions)
    │   └── LockTimeoutError: Named log-file lock not acquired in time
    ├── RotationError: Rename/delete failure during log rotation
    └── ValidationError: Malformed command-line input

Example:
    >>> try:
    ...     engine.initialize(log_path="/proc/forbidden/aither.log")
    ... except ConfigurationError as e:
    ...     print(e.error_code, e.details["log_path"])
"""

from typing import Any, Dict, Optional


class AitherLogError(Exception):
    """
    Base exception class for all aitherlog errors.

    Attributes:
        message (str): Human-readable error description
        error_code (str): Machine-readable error identifier, defaults to the
            class name when not supplied
        details (Dict[str, Any]): Additional contextual information such as
            paths, timeouts or the offending setting
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({rendered})"


class ConfigurationError(AitherLogError):
    """
    Raised when logging configuration is invalid or unusable.

    Common scenarios:
        - Unknown level or format names in environment variables
        - Negative rotation limits
        - An explicit log path that points at a directory or whose parent
          directory cannot be created

    Example:
        >>> raise ConfigurationError(
        ...     "Log directory cannot be created",
        ...     error_code="CONFIG_LOG_PATH_UNUSABLE",
        ...     details={"log_path": "/readonly/aither.log"},
        ... )
    """

    pass


class LogWriteError(AitherLogError):
    """Raised when a formatted line cannot be appended to the log file."""

    pass


class LockTimeoutError(LogWriteError):
    """
    Raised when the named log-file lock is not acquired within its timeout.

    The file sink converts this into a console fallback; it never reaches
    callers of ``write``.
    """

    pass


class RotationError(AitherLogError):
    """Raised for rename/delete failures while rotating log files."""

    pass


class ValidationError(AitherLogError):
    """Raised when command-line input cannot be turned into a log request."""

    pass

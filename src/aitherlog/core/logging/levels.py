"""
Log level hierarchy.

Levels are totally ordered; a sink threshold names the most verbose level
that sink accepts, and an entry is delivered iff ``level <= threshold``.
SUCCESS shares INFO's rank but keeps its own label, and WARNING is accepted
as a legacy spelling of WARN.
"""

from enum import IntEnum
from typing import Dict, Union


class LogLevel(IntEnum):
    """Ordered severity ranks, least verbose first."""

    SILENT = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5
    VERBOSE = 6


# Label -> rank. Labels not in LogLevel (SUCCESS, WARNING) are aliases.
LEVEL_RANKS: Dict[str, LogLevel] = {
    "SILENT": LogLevel.SILENT,
    "ERROR": LogLevel.ERROR,
    "WARN": LogLevel.WARN,
    "WARNING": LogLevel.WARN,
    "INFO": LogLevel.INFO,
    "SUCCESS": LogLevel.INFO,
    "DEBUG": LogLevel.DEBUG,
    "TRACE": LogLevel.TRACE,
    "VERBOSE": LogLevel.VERBOSE,
}

LevelLike = Union[str, int, LogLevel]


def normalize_level_name(level: LevelLike) -> str:
    """
    Return the canonical label for ``level``.

    Raises:
        ValueError: If the name or number is not part of the hierarchy
    """
    if isinstance(level, LogLevel):
        return level.name
    if isinstance(level, int):
        return LogLevel(level).name

    name = str(level).strip().upper()
    if name == "WARNING":
        return "WARN"
    if name not in LEVEL_RANKS:
        raise ValueError(
            f"Unknown log level '{level}'. Valid levels: {', '.join(LEVEL_RANKS)}"
        )
    return name


def parse_level(level: LevelLike) -> LogLevel:
    """Resolve a label, number or LogLevel to its rank."""
    if isinstance(level, LogLevel):
        return level
    if isinstance(level, int):
        return LogLevel(level)
    return LEVEL_RANKS[normalize_level_name(level)]


def is_enabled(level: LevelLike, threshold: LevelLike) -> bool:
    """True when an entry at ``level`` clears a sink set to ``threshold``."""
    rank = parse_level(level)
    if rank == LogLevel.SILENT:
        return False
    return rank <= parse_level(threshold)

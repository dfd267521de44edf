"""
aitherlog Logging Module - Multi-sink Structured Logging.

This package holds the logging engine and the pieces it is assembled from.
Entries are built once per call, filtered against independent file and
console thresholds, rendered in one of three encodings and handed to the
sinks.

Key Features:
    - Ordered level hierarchy (SILENT < ERROR < WARN < INFO < DEBUG < TRACE < VERBOSE)
    - Structured, simple and newline-delimited JSON file encodings
    - Rich console rendering with per-level colours
    - Size-based rotation with a cascading numbered backup set
    - Named file locks shared between threads and processes
    - Named performance timers and parallel batch ingestion
    - structlog loggers that write through the engine

Components:
    - levels: Level enumeration and parsing
    - entry: Entry records, caller discovery and exception descriptors
    - formatters: File and console renderers
    - locks: Named lock implementations
    - rotation: Backup cascade
    - sinks: File and console sinks
    - tracer: Performance timers
    - bulk: Batch dispatcher
    - engine: LoggingEngine and the process-wide functional API
    - logger: structlog bridge

Example:
    >>> from aitherlog.core.logging.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("Lab provisioned", lab="dev-01", nodes=3)
    >>>
    >>> run_logger = logger.bind(run_id="r-42")
    >>> run_logger.warning("Drift detected", resource="vm-3")
"""

"""
Custom exceptions for logsieve.

These exceptions provide clear error semantics across the engine.
Use them to distinguish between bad input logs, incompatible or damaged
indexes, and configuration errors.
"""


class LogSieveError(Exception):
    """Base exception for all engine failures."""
    pass


class LogIngestionError(LogSieveError):
    """Raised when a log source cannot be read or is not text."""
    pass


class ConfigurationError(LogSieveError):
    """Raised when configuration is invalid or missing."""
    pass


class IndexStateError(LogSieveError):
    """Base exception for frequency index problems."""
    pass


class IncompatibleIndexError(IndexStateError):
    """Raised when an index has a different format version or ruleset."""
    pass


class IndexCorruptedError(IndexStateError):
    """Raised when a persisted index is truncated or malformed."""
    pass


class IndexFrozenError(IndexStateError):
    """Raised when a read-only index is mutated."""
    pass


class TrainingError(LogSieveError):
    """Raised when a training run cannot start."""
    pass

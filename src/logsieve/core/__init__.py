"""
Core module: Configuration, logging, and exception handling.
"""

from .config import (
    Config,
    ExtractionConfig,
    IgnoreBlock,
    NormalizerConfig,
    ScoringConfig,
    TrainerConfig,
    config,
)
from .exceptions import (
    ConfigurationError,
    IncompatibleIndexError,
    IndexCorruptedError,
    IndexFrozenError,
    IndexStateError,
    LogIngestionError,
    LogSieveError,
    TrainingError,
)
from .logging_config import setup_logging

__all__ = [
    "Config",
    "ExtractionConfig",
    "IgnoreBlock",
    "NormalizerConfig",
    "ScoringConfig",
    "TrainerConfig",
    "config",
    "setup_logging",
    "LogSieveError",
    "LogIngestionError",
    "ConfigurationError",
    "IndexStateError",
    "IncompatibleIndexError",
    "IndexCorruptedError",
    "IndexFrozenError",
    "TrainingError",
]

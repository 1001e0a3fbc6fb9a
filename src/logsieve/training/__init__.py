"""
Training module: build frequency indexes from corpora of successful logs.
"""

from .schema import SkippedLog, TrainingSummary
from .trainer import CorpusTrainer, contribution_weights, index_log, train

__all__ = [
    "CorpusTrainer",
    "SkippedLog",
    "TrainingSummary",
    "contribution_weights",
    "index_log",
    "train",
]

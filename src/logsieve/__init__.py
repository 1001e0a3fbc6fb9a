"""
logsieve: isolate the probable failure cause in CI build logs.

Learns which line shapes are normal from logs of successful builds, then
scores a failed build's log against that model and returns the anomalous
blocks.
"""

from logsieve.core.config import Config, ExtractionConfig, NormalizerConfig, TrainerConfig
from logsieve.data.normalizers import LineNormalizer
from logsieve.extraction import Block, ExtractionResult, Extractor, extract
from logsieve.index import FrequencyIndex, load_index, load_or_create_index, save_index
from logsieve.training import CorpusTrainer, TrainingSummary, train

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ExtractionConfig",
    "NormalizerConfig",
    "TrainerConfig",
    "LineNormalizer",
    "FrequencyIndex",
    "save_index",
    "load_index",
    "load_or_create_index",
    "CorpusTrainer",
    "TrainingSummary",
    "train",
    "Extractor",
    "Block",
    "ExtractionResult",
    "extract",
]

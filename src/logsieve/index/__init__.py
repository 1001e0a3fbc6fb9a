"""
Index module: the frequency index shared between training and extraction.
"""

from .frequency import INDEX_FORMAT_VERSION, MAGIC, FrequencyIndex, IndexStats
from .storage import load_index, load_or_create_index, save_index

__all__ = [
    "FrequencyIndex",
    "IndexStats",
    "INDEX_FORMAT_VERSION",
    "MAGIC",
    "save_index",
    "load_index",
    "load_or_create_index",
]

"""
Data module: log sources, line cleaning, normalization and CI variables.

Turns raw build logs into ordered, normalized lines for the frequency index
and the extractor. Pipeline:

    Raw log (file / bytes / lines)
        ↓
    Ingestion (logsieve/data/ingestion.py) → LogLine
        ↓
    Cleaning (logsieve/data/sanitize.py)
        ↓
    Masking (logsieve/data/normalizers.py) → NormalizedShape
        ↓
    Ready for training or extraction
"""

from logsieve.data.ingestion import (
    BaseLogSource,
    BytesLogSource,
    FileLogSource,
    LinesLogSource,
    TextLogSource,
    as_log_source,
    decode_log_bytes,
    discover_log_files,
    read_log_lines,
)
from logsieve.data.normalizers import (
    MASKING_RULES,
    RULESET_VERSION,
    LineNormalizer,
    MaskingRule,
    default_normalizer,
    normalize_line,
)
from logsieve.data.sanitize import clean, is_blank, split_lines
from logsieve.data.schema import LogLine, NormalizedShape
from logsieve.data.variables import LogVariables, extract_variable

__all__ = [
    # Schema
    "LogLine",
    "NormalizedShape",
    
    # Ingestion
    "BaseLogSource",
    "FileLogSource",
    "BytesLogSource",
    "TextLogSource",
    "LinesLogSource",
    "as_log_source",
    "decode_log_bytes",
    "discover_log_files",
    "read_log_lines",
    
    # Cleaning
    "clean",
    "is_blank",
    "split_lines",
    
    # Normalization
    "LineNormalizer",
    "MaskingRule",
    "MASKING_RULES",
    "RULESET_VERSION",
    "default_normalizer",
    "normalize_line",
    
    # Variables
    "LogVariables",
    "extract_variable",
]

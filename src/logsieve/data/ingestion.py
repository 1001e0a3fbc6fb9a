"""
Log sources: turn files, byte blobs and line lists into ordered LogLines.

The engine does not care where a log came from (local file, decompressed
download, object storage); callers hand it a source and get decoded lines
back.

Design:
- Bytes are decoded as UTF-8 with invalid sequences replaced by U+FFFD
  instead of failing, since real build logs contain occasional binary noise
- A leading byte-order mark is dropped
- Input with NUL bytes near the start is rejected as non-text
- Blank lines are kept so line numbers match the source
- Sources may carry a pass/fail label for training guards
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from logsieve.core.exceptions import LogIngestionError
from logsieve.data.sanitize import split_lines
from logsieve.data.schema import LogLine

logger = logging.getLogger(__name__)

# Bytes inspected when deciding whether a blob is text.
BINARY_SNIFF_BYTES = 8192

LogInput = Union["BaseLogSource", str, os.PathLike, bytes, bytearray, Sequence[str]]


def decode_log_bytes(data: bytes, encoding: str = "utf-8", name: str = "<bytes>") -> str:
    """
    Decode raw log bytes.
    
    Args:
        data: Raw log content
        encoding: Text encoding (default utf-8)
        name: Source name used in error messages
    
    Returns:
        Decoded text, invalid sequences replaced
    
    Raises:
        LogIngestionError: If the content looks binary or the encoding is unknown
    """
    if b"\x00" in data[:BINARY_SNIFF_BYTES]:
        raise LogIngestionError(f"{name} does not look like text (NUL bytes found)")
    try:
        text = data.decode(encoding, errors="replace")
    except LookupError as e:
        raise LogIngestionError(f"Unknown encoding {encoding!r} for {name}") from e
    return text.lstrip("\ufeff")


class BaseLogSource(ABC):
    """
    Abstract base class for log sources.
    
    Each source type implements ``read_text``; splitting into numbered
    lines is shared.
    """
    
    def __init__(self, name: str, passed: Optional[bool] = None):
        """
        Args:
            name: Human-readable identifier used in logs and summaries
            passed: True for a successful build, False for a failed one,
                None when unknown
        """
        self.name = name
        self.passed = passed
    
    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
    
    @abstractmethod
    def read_text(self) -> str:
        """
        Return the whole decoded log.
        
        Raises:
            LogIngestionError: If the source cannot be read
        """
        pass
    
    def read_raw_lines(self) -> List[str]:
        return split_lines(self.read_text())
    
    def read_lines(self) -> List[LogLine]:
        """Read the source as numbered lines."""
        return [
            LogLine(number=number, text=text)
            for number, text in enumerate(self.read_raw_lines())
        ]


class FileLogSource(BaseLogSource):
    """
    Reads a log file from disk.
    
    Example:
        source = FileLogSource("logs/job-1234.log", passed=True)
        lines = source.read_lines()
    """
    
    def __init__(
        self,
        filepath: Union[str, Path],
        encoding: str = "utf-8",
        passed: Optional[bool] = None,
    ):
        """
        Raises:
            LogIngestionError: If file doesn't exist or cannot be accessed
        """
        self.filepath = Path(filepath)
        self.encoding = encoding
        super().__init__(str(self.filepath), passed=passed)
        
        try:
            exists = self.filepath.is_file()
        except OSError as e:
            raise LogIngestionError(f"Cannot access log {self.filepath}: {e}") from e
        if not exists:
            raise LogIngestionError(f"Log file not found: {self.filepath}")
    
    def read_text(self) -> str:
        try:
            data = self.filepath.read_bytes()
        except OSError as e:
            logger.error(f"Error reading log file {self.filepath}: {e}")
            raise LogIngestionError(f"Failed to read log {self.filepath}: {e}") from e
        return decode_log_bytes(data, self.encoding, self.name)


class BytesLogSource(BaseLogSource):
    """Log content already held in memory as bytes."""
    
    def __init__(
        self,
        data: Union[bytes, bytearray],
        name: str = "<bytes>",
        encoding: str = "utf-8",
        passed: Optional[bool] = None,
    ):
        super().__init__(name, passed=passed)
        self.data = bytes(data)
        self.encoding = encoding
    
    def read_text(self) -> str:
        return decode_log_bytes(self.data, self.encoding, self.name)


class TextLogSource(BaseLogSource):
    """Log content already decoded into one string."""
    
    def __init__(self, text: str, name: str = "<text>", passed: Optional[bool] = None):
        super().__init__(name, passed=passed)
        self.text = text
    
    def read_text(self) -> str:
        return self.text.lstrip("\ufeff")


class LinesLogSource(BaseLogSource):
    """Log content already split into lines."""
    
    def __init__(self, lines: Iterable[str], name: str = "<lines>", passed: Optional[bool] = None):
        super().__init__(name, passed=passed)
        self.lines = [line.rstrip("\r\n") for line in lines]
    
    def read_text(self) -> str:
        return "\n".join(self.lines)
    
    def read_raw_lines(self) -> List[str]:
        return list(self.lines)


def as_log_source(item: LogInput, name: Optional[str] = None) -> BaseLogSource:
    """
    Coerce supported inputs to a log source.
    
    - BaseLogSource: returned unchanged
    - str / os.PathLike: treated as a file path
    - bytes / bytearray: raw content
    - sequence of str: already split lines
    
    Use TextLogSource explicitly for a log held in a single string.
    
    Raises:
        LogIngestionError: If the input type is unsupported or the file is missing
    """
    if isinstance(item, BaseLogSource):
        return item
    if isinstance(item, (str, os.PathLike)):
        return FileLogSource(item)
    if isinstance(item, (bytes, bytearray)):
        return BytesLogSource(item, name=name or "<bytes>")
    if isinstance(item, (list, tuple)) and all(isinstance(line, str) for line in item):
        return LinesLogSource(item, name=name or "<lines>")
    raise LogIngestionError(f"Unsupported log input: {type(item).__name__}")


def read_log_lines(item: LogInput) -> List[LogLine]:
    """Read any supported log input as numbered lines."""
    return as_log_source(item).read_lines()


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def discover_log_files(root: Union[str, Path]) -> List[Path]:
    """
    List every non-hidden file under ``root``, recursively and sorted.
    
    Files or directories whose name starts with ``.`` are skipped. A file
    path is returned as a one-element list.
    
    Raises:
        LogIngestionError: If root doesn't exist
    """
    root = Path(root)
    if root.is_file():
        return [root]
    if not root.is_dir():
        raise LogIngestionError(f"Log directory not found: {root}")
    
    return sorted(
        path for path in root.rglob("*")
        if path.is_file() and not _is_hidden(path, root)
    )

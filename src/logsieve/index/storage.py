"""
File persistence for frequency indexes.

Writes are atomic: the index is written to a temporary file next to the
target and moved into place, so a reader never sees a half-written index.
Loaded indexes are frozen unless the caller asks for a writable copy for
incremental training.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from logsieve.core.exceptions import IncompatibleIndexError, IndexCorruptedError
from logsieve.index.frequency import FrequencyIndex

logger = logging.getLogger(__name__)


def save_index(index: FrequencyIndex, path: Union[str, Path]) -> None:
    """
    Atomically write ``index`` to ``path``.
    
    Args:
        index: Index to persist
        path: Destination file; its directory must exist
    """
    path = Path(path)
    logger.debug(f"Saving index to {path}...")
    
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            index.write_to(f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    
    logger.info(f"Index saved to {path} ({len(index)} shapes, {index.documents} documents)")


def load_index(
    path: Union[str, Path],
    expected_ruleset: Optional[str] = None,
    writable: bool = False,
) -> FrequencyIndex:
    """
    Load an index written by ``save_index``.
    
    Args:
        path: Index file
        expected_ruleset: Ruleset tag the caller's normalizer uses; a
            different tag in the file is rejected
        writable: Return a mutable index instead of a frozen one
    
    Returns:
        The loaded index (frozen unless ``writable``)
    
    Raises:
        FileNotFoundError: If the file doesn't exist
        IncompatibleIndexError: If the format version or ruleset don't match
        IndexCorruptedError: If the file is truncated or malformed
    """
    path = Path(path)
    logger.info(f"Loading index from {path}...")
    
    with open(path, "rb") as f:
        try:
            index = FrequencyIndex.read_from(f)
        except IncompatibleIndexError as e:
            raise IncompatibleIndexError(f"{path}: {e}") from e
        except IndexCorruptedError as e:
            raise IndexCorruptedError(f"{path}: {e}") from e
    
    if expected_ruleset is not None and index.ruleset != expected_ruleset:
        raise IncompatibleIndexError(
            f"{path}: index was built with ruleset {index.ruleset!r}, "
            f"normalizer uses {expected_ruleset!r}"
        )
    
    logger.info(f"Index ready ({len(index)} shapes, {index.documents} documents).")
    return index if writable else index.freeze()


def load_or_create_index(path: Union[str, Path], ruleset: str) -> FrequencyIndex:
    """
    Load a writable index for incremental training, or start an empty one
    if ``path`` doesn't exist yet.
    """
    path = Path(path)
    if path.exists():
        return load_index(path, expected_ruleset=ruleset, writable=True)
    
    logger.info(f"Initializing new index for {path}...")
    return FrequencyIndex(ruleset=ruleset)

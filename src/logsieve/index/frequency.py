"""
Frequency index: how often each normalized line shape appeared in the
training corpus of successful builds.

The index is the only state shared between training and extraction. It is
built by the corpus trainer, persisted as an immutable binary snapshot and
loaded read-only for extraction, so any number of extractions can use one
index concurrently.

Design:
- Two counters per shape: occurrence count (weighted contributions) and
  document count (training logs that contained the shape)
- Counts only ever grow; merge is a shape-wise sum, so it is commutative and
  associative and sharded partial indexes merge in any order
- A ruleset tag records which normalizer produced the shapes
- Binary encoding is length-prefixed and little-endian; entries are written
  sorted by shape so identical indexes produce identical bytes

Memory grows linearly with the number of distinct shapes (two dict entries
per shape).
"""

from __future__ import annotations

import io
import logging
import statistics
import struct
import threading
from typing import BinaryIO, Dict, Iterator, Mapping, Optional, Tuple

from pydantic import BaseModel

from logsieve.core.exceptions import (
    IncompatibleIndexError,
    IndexCorruptedError,
    IndexFrozenError,
)
from logsieve.data.normalizers import default_normalizer

logger = logging.getLogger(__name__)

MAGIC = b"LSIX"
# Bump whenever the binary layout changes.
INDEX_FORMAT_VERSION = 1
MAX_COUNT = 2**64 - 1

_HEADER = struct.Struct("<4sH")
_TAG_LENGTH = struct.Struct("<H")
_TOTALS = struct.Struct("<QQ")
_SHAPE_LENGTH = struct.Struct("<I")
_COUNTS = struct.Struct("<QQ")

IndexEntry = Tuple[str, int, int]


class IndexStats(BaseModel):
    """
    Summary statistics of an index.

    Fields:
    - shapes: number of distinct shapes
    - occurrences: sum of all occurrence counts
    - documents: number of training logs recorded
    - max_count / median_count: occurrence count distribution (0 when empty)
    """

    shapes: int
    occurrences: int
    documents: int
    max_count: int
    median_count: float


def _saturating_add(a: int, b: int) -> int:
    return min(a + b, MAX_COUNT)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise IndexCorruptedError(f"Index truncated while reading {what}")
    return data


class FrequencyIndex:
    """
    Mapping from normalized shape to occurrence statistics.

    Mutation methods are lock-protected, so several threads may record into
    one index; the trainer still gives each worker a private index and merges
    at the end. Lookups take no lock and have no side effects.
    """

    def __init__(self, ruleset: Optional[str] = None) -> None:
        self.ruleset = ruleset if ruleset is not None else default_normalizer().ruleset
        self.documents = 0
        self._counts: Dict[str, int] = {}
        self._doc_counts: Dict[str, int] = {}
        self._frozen = False
        self._stats: Optional[IndexStats] = None
        self._lock = threading.Lock()

    def __getstate__(self) -> dict:
        state = self.__dict__.copy()
        del state["_lock"]
        return state

    def __setstate__(self, state: dict) -> None:
        self.__dict__.update(state)
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"FrequencyIndex(shapes={len(self._counts)}, documents={self.documents}, "
            f"ruleset={self.ruleset!r}, frozen={self._frozen})"
        )

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, shape: object) -> bool:
        return shape in self._counts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrequencyIndex):
            return NotImplemented
        return (
            self.ruleset == other.ruleset
            and self.documents == other.documents
            and self._counts == other._counts
            and self._doc_counts == other._doc_counts
        )

    # -- mutation -----------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "FrequencyIndex":
        """Make the index read-only. Returns self."""
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise IndexFrozenError("Index is read-only")

    def record(self, shape: str, weight: int = 1) -> None:
        """
        Add ``weight`` occurrences of ``shape``, inserting it if absent.

        Does not touch document counts; see ``record_document``.
        """
        if weight < 1:
            raise ValueError(f"weight must be >= 1, got {weight}")
        self._check_mutable()
        with self._lock:
            self._counts[shape] = _saturating_add(self._counts.get(shape, 0), weight)
            self._stats = None

    def record_document(self, contributions: Mapping[str, int]) -> None:
        """
        Record one training log.

        Args:
            contributions: shape -> weight for every distinct shape of the log
        """
        self._check_mutable()
        with self._lock:
            for shape, weight in contributions.items():
                if weight < 1:
                    raise ValueError(f"weight must be >= 1, got {weight} for {shape!r}")
                self._counts[shape] = _saturating_add(self._counts.get(shape, 0), weight)
                self._doc_counts[shape] = _saturating_add(self._doc_counts.get(shape, 0), 1)
            self.documents = _saturating_add(self.documents, 1)
            self._stats = None

    def merge(self, other: "FrequencyIndex") -> None:
        """
        Add every count of ``other`` into this index and empty ``other``.

        Raises:
            IncompatibleIndexError: If the rulesets differ
            IndexFrozenError: If either index is read-only
        """
        if other is self:
            raise ValueError("Cannot merge an index into itself")
        if other.ruleset != self.ruleset:
            raise IncompatibleIndexError(
                f"Cannot merge index with ruleset {other.ruleset!r} into {self.ruleset!r}"
            )
        self._check_mutable()
        other._check_mutable()

        first, second = sorted((self, other), key=id)
        with first._lock, second._lock:
            for shape, count in other._counts.items():
                self._counts[shape] = _saturating_add(self._counts.get(shape, 0), count)
            for shape, count in other._doc_counts.items():
                self._doc_counts[shape] = _saturating_add(self._doc_counts.get(shape, 0), count)
            self.documents = _saturating_add(self.documents, other.documents)
            self._stats = None

            other._counts = {}
            other._doc_counts = {}
            other.documents = 0
            other._stats = None

    # -- queries ------------------------------------------------------------

    def lookup(self, shape: str) -> Optional[int]:
        """Occurrence count of ``shape``, or None if it was never recorded."""
        return self._counts.get(shape)

    def document_frequency(self, shape: str) -> int:
        """Number of training logs that contained ``shape``."""
        return self._doc_counts.get(shape, 0)

    def items(self) -> Iterator[IndexEntry]:
        """Yield ``(shape, count, document_count)`` sorted by shape."""
        for shape in sorted(self._counts):
            yield shape, self._counts[shape], self._doc_counts.get(shape, 0)

    def stats(self) -> IndexStats:
        """Summary statistics, cached until the next mutation."""
        stats = self._stats
        if stats is None:
            counts = list(self._counts.values())
            stats = IndexStats(
                shapes=len(counts),
                occurrences=sum(counts),
                documents=self.documents,
                max_count=max(counts) if counts else 0,
                median_count=float(statistics.median(counts)) if counts else 0.0,
            )
            self._stats = stats
        return stats

    # -- binary encoding ----------------------------------------------------

    def write_to(self, stream: BinaryIO) -> None:
        """Write the binary encoding of the index to a byte stream."""
        with self._lock:
            tag = self.ruleset.encode("utf-8")
            stream.write(_HEADER.pack(MAGIC, INDEX_FORMAT_VERSION))
            stream.write(_TAG_LENGTH.pack(len(tag)))
            stream.write(tag)
            stream.write(_TOTALS.pack(self.documents, len(self._counts)))
            for shape in sorted(self._counts):
                encoded = shape.encode("utf-8", "surrogatepass")
                stream.write(_SHAPE_LENGTH.pack(len(encoded)))
                stream.write(encoded)
                stream.write(_COUNTS.pack(self._counts[shape], self._doc_counts.get(shape, 0)))

    def serialize(self) -> bytes:
        buffer = io.BytesIO()
        self.write_to(buffer)
        return buffer.getvalue()

    @staticmethod
    def read_header(stream: BinaryIO) -> Tuple[str, int, int]:
        """
        Read and validate the header.

        Returns:
            Tuple of (ruleset, documents, entry_count)

        Raises:
            IncompatibleIndexError: If the magic or format version is wrong
            IndexCorruptedError: If the header is truncated
        """
        head = stream.read(_HEADER.size)
        if len(head) < _HEADER.size:
            raise IndexCorruptedError("Index truncated while reading header")
        magic, version = _HEADER.unpack(head)
        if magic != MAGIC:
            raise IncompatibleIndexError("Not a logsieve index (bad magic bytes)")
        if version != INDEX_FORMAT_VERSION:
            raise IncompatibleIndexError(
                f"Incompatible index version {version} (expected {INDEX_FORMAT_VERSION})"
            )

        (tag_length,) = _TAG_LENGTH.unpack(_read_exact(stream, _TAG_LENGTH.size, "ruleset length"))
        try:
            ruleset = _read_exact(stream, tag_length, "ruleset").decode("utf-8")
        except UnicodeDecodeError as e:
            raise IndexCorruptedError("Index ruleset tag is not valid UTF-8") from e
        documents, entries = _TOTALS.unpack(_read_exact(stream, _TOTALS.size, "totals"))
        return ruleset, documents, entries

    @classmethod
    def iter_entries(cls, stream: BinaryIO) -> Iterator[IndexEntry]:
        """
        Stream ``(shape, count, document_count)`` entries without building
        an index, for indexes too large to hold in memory.
        """
        _, _, entries = cls.read_header(stream)
        yield from cls._iter_body(stream, entries)

    @staticmethod
    def _iter_body(stream: BinaryIO, entries: int) -> Iterator[IndexEntry]:
        for position in range(entries):
            (length,) = _SHAPE_LENGTH.unpack(
                _read_exact(stream, _SHAPE_LENGTH.size, f"entry {position}")
            )
            try:
                shape = _read_exact(stream, length, f"entry {position}").decode(
                    "utf-8", "surrogatepass"
                )
            except UnicodeDecodeError as e:
                raise IndexCorruptedError(f"Entry {position} is not valid UTF-8") from e
            count, doc_count = _COUNTS.unpack(
                _read_exact(stream, _COUNTS.size, f"entry {position}")
            )
            yield shape, count, doc_count

    @classmethod
    def read_from(cls, stream: BinaryIO) -> "FrequencyIndex":
        """
        Read an index written by ``write_to``.

        Raises:
            IncompatibleIndexError: If the magic or format version is wrong
            IndexCorruptedError: If the data is truncated or has trailing bytes
        """
        ruleset, documents, entries = cls.read_header(stream)
        index = cls(ruleset=ruleset)
        index.documents = documents
        for shape, count, doc_count in cls._iter_body(stream, entries):
            index._counts[shape] = count
            if doc_count:
                index._doc_counts[shape] = doc_count
        if stream.read(1):
            raise IndexCorruptedError("Unexpected trailing data after index entries")
        return index

    @classmethod
    def deserialize(cls, data: bytes) -> "FrequencyIndex":
        return cls.read_from(io.BytesIO(data))

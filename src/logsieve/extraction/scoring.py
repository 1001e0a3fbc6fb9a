"""
Scoring of target lines against a frequency index.

Maps a shape's historical occurrence count to an anomaly score in [0, 1]:
shapes common in successful builds score near 0, unseen shapes score 1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from logsieve.core.config import ScoringConfig
from logsieve.index.frequency import FrequencyIndex

# Bump whenever the score formula changes.
SCORING_VERSION = 1


def reference_count(index: FrequencyIndex, scoring: ScoringConfig) -> float:
    """
    Count at which a shape stops being anomalous at all.

    Falls back to the maximum count when the index has shapes but no
    recorded documents.
    """
    stats = index.stats()
    if scoring.reference == "documents" and stats.documents > 0:
        return float(stats.documents)
    if scoring.reference == "median":
        return stats.median_count
    return float(stats.max_count)


def score_count(count: Optional[int], reference: float) -> float:
    """
    Anomaly score of a shape seen ``count`` times.

    ``1 - log1p(count) / log1p(reference)``, clamped to [0, 1]. Never
    increases with ``count``; unseen shapes and an empty reference score 1.
    """
    if not count or reference <= 0:
        return 1.0
    score = 1.0 - math.log1p(count) / math.log1p(reference)
    return min(max(score, 0.0), 1.0)


@dataclass
class LineScorer:
    """
    Scores shapes against one index.

    The reference count is computed once at construction; build a new
    scorer if the index changes.
    """

    index: FrequencyIndex
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self) -> None:
        self.empty = len(self.index) == 0
        self.reference = 0.0 if self.empty else reference_count(self.index, self.scoring)

    def score(self, shape: str) -> Tuple[Optional[int], float]:
        """Return ``(count, score)`` for a shape."""
        if self.empty:
            return None, 1.0
        count = self.index.lookup(shape)
        return count, score_count(count, self.reference)

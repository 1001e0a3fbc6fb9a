"""
Schema definitions for corpus training reports.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class SkippedLog(BaseModel):
    """A corpus member that could not be used, and why."""

    name: str
    reason: str


class TrainingSummary(BaseModel):
    """
    Corpus-level outcome of one training run.

    Fields:
    - processed: logs merged into the index
    - skipped: logs left out, with reasons
    - lines: lines read from processed logs
    - shapes / documents: final index size
    - stopped: True if the run ended early on a stop request
    - duration_seconds: wall-clock time of the run
    """

    processed: int = 0
    skipped: List[SkippedLog] = Field(default_factory=list)
    lines: int = 0
    shapes: int = 0
    documents: int = 0
    stopped: bool = False
    duration_seconds: float = 0.0

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

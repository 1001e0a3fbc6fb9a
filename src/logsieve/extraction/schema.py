"""
Schema definitions for extraction results.

Every result references the lines it selected, their per-line scores and the
aggregate score used for ranking, so output can be rendered or re-ranked
without re-running the extractor.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from logsieve.data.schema import LogLine


class LineScore(BaseModel):
    """
    Anomaly score of one target line.

    Fields:
    - number: 0-based line number in the target log
    - shape: normalized shape that was looked up
    - count: occurrence count in the index (None if unseen)
    - score: anomaly score in [0.0, 1.0]; higher is more unusual
    """

    number: int = Field(ge=0)
    shape: str
    count: Optional[int] = None
    score: float = Field(ge=0.0, le=1.0)


class Block(BaseModel):
    """
    A contiguous run of target lines selected as one excerpt unit.

    Fields:
    - start / end: inclusive line numbers
    - lines: member lines, in order (bridged and context lines included)
    - scores: anomaly score of each member line
    - score: aggregate score used for ranking
    - peak_score: highest member score
    - anomalous_lines: members scoring above the cutoff
    - rank: 0-based position in the ranking
    - clipped: True if the line cap cut the block short
    """

    start: int = Field(ge=0)
    end: int = Field(ge=0)
    lines: List[LogLine]
    scores: List[float]
    score: float = Field(ge=0.0)
    peak_score: float = Field(ge=0.0, le=1.0)
    anomalous_lines: int = Field(ge=1)
    rank: int = Field(0, ge=0)
    clipped: bool = False

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


class ExtractionResult(BaseModel):
    """
    Selected blocks of one target log.

    Fields:
    - blocks: kept blocks in rank order (best first)
    - total_lines: lines in the target log
    - candidate_blocks: blocks found before caps were applied
    - dropped_blocks: blocks removed by max_blocks / max_lines
    - clipped_lines: lines cut from blocks shortened by max_lines
    - variables: CI variables announced in the log
    """

    blocks: List[Block] = Field(default_factory=list)
    total_lines: int = 0
    candidate_blocks: int = 0
    dropped_blocks: int = 0
    clipped_lines: int = 0
    variables: Dict[str, str] = Field(default_factory=dict)

    @property
    def truncated(self) -> bool:
        return self.dropped_blocks > 0 or self.clipped_lines > 0

    @property
    def is_empty(self) -> bool:
        return not self.blocks

    def by_rank(self) -> List[Block]:
        return list(self.blocks)

    def by_position(self) -> List[Block]:
        """Kept blocks in original log order, for display."""
        return sorted(self.blocks, key=lambda block: block.start)

    def render(self, separator: str = "---") -> str:
        """Excerpt text in position order, blocks separated by ``separator``."""
        return f"\n{separator}\n".join(block.text() for block in self.by_position())

"""
Extraction engine.

Scores an unseen (typically failed) log against a trained frequency index
and returns the blocks of lines most likely to explain the failure.

Algorithm:
1. Normalize every line in order
2. Score each line from its shape's count in the index
3. Lines scoring above the cutoff are candidates; nearby candidates merge
   into blocks (gap tolerance), ignore regions break blocks
4. Rank blocks by aggregate score, ties by position, then apply caps

The index is only read, so one index can serve concurrent extractions.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

from logsieve.core.config import ExtractionConfig, config as default_config
from logsieve.core.exceptions import IncompatibleIndexError
from logsieve.data.ingestion import LogInput, read_log_lines
from logsieve.data.normalizers import LineNormalizer, default_normalizer
from logsieve.data.sanitize import is_blank
from logsieve.data.schema import LogLine
from logsieve.data.variables import LogVariables
from logsieve.extraction.grouping import (
    add_context,
    build_block,
    group_candidates,
    ignored_lines,
    rank_and_cap,
)
from logsieve.extraction.schema import ExtractionResult, LineScore
from logsieve.extraction.scoring import LineScorer
from logsieve.index.frequency import FrequencyIndex

logger = logging.getLogger(__name__)

TargetLog = Union[LogInput, Sequence[LogLine]]


class Extractor:
    """
    Deterministic excerpt extractor bound to one index.

    Notes:
    - The index ruleset must match the normalizer's.
    - Against an empty index every line is maximally anomalous.
    - Blank lines count as normal unless the index is empty.
    """

    def __init__(
        self,
        index: FrequencyIndex,
        config: Optional[ExtractionConfig] = None,
        normalizer: Optional[LineNormalizer] = None,
    ) -> None:
        self.index = index
        self.config = config or default_config.extraction
        self.normalizer = normalizer or default_normalizer()

        if index.ruleset != self.normalizer.ruleset:
            raise IncompatibleIndexError(
                f"Index ruleset {index.ruleset!r} does not match normalizer {self.normalizer.ruleset!r}"
            )

    def _read(self, target_log: TargetLog) -> List[LogLine]:
        if isinstance(target_log, (list, tuple)) and target_log and isinstance(target_log[0], LogLine):
            return list(target_log)
        return read_log_lines(target_log)

    def score_lines(self, lines: Sequence[LogLine]) -> List[LineScore]:
        """Score every line, in order."""
        scorer = LineScorer(self.index, self.config.scoring)
        blank_is_normal = self.config.blank_lines_are_normal and not scorer.empty
        scores: List[LineScore] = []

        for line in lines:
            shape = self.normalizer.normalize(line.text)
            count, score = scorer.score(shape)
            if blank_is_normal and is_blank(shape):
                score = 0.0
            scores.append(LineScore(number=line.number, shape=shape, count=count, score=score))

        return scores

    def extract(self, target_log: TargetLog) -> ExtractionResult:
        """
        Extract the probable error excerpt of one log.

        Args:
            target_log: Path, log source, bytes, list of raw lines or list
                of LogLine objects

        Returns:
            ExtractionResult (empty when nothing stands out)

        Raises:
            LogIngestionError: If the log cannot be read
        """
        cfg = self.config
        lines = self._read(target_log)
        scores = self.score_lines(lines)
        values = [line_score.score for line_score in scores]

        ignored = ignored_lines([line.text for line in lines], cfg.ignore_blocks)
        candidates = [value > cfg.cutoff and not skip for value, skip in zip(values, ignored)]

        spans = group_candidates(candidates, cfg.max_gap, ignored)
        spans = add_context(spans, cfg.context_lines, len(lines), ignored)
        blocks = [
            build_block(lines[start:end + 1], values[start:end + 1], cfg.cutoff, cfg.aggregate)
            for start, end in spans
        ]

        kept, dropped, clipped = rank_and_cap(
            blocks,
            cfg.cutoff,
            cfg.aggregate,
            max_blocks=cfg.max_blocks,
            max_lines=cfg.max_lines,
        )

        variables = LogVariables.extract(line.text for line in lines).as_dict()

        logger.debug(
            f"Extracted {len(kept)} of {len(blocks)} blocks from {len(lines)} lines "
            f"({sum(candidates)} candidate lines, {dropped} dropped, {clipped} lines clipped)"
        )

        return ExtractionResult(
            blocks=kept,
            total_lines=len(lines),
            candidate_blocks=len(blocks),
            dropped_blocks=dropped,
            clipped_lines=clipped,
            variables=variables,
        )


def extract(
    target_log: TargetLog,
    index: FrequencyIndex,
    config: Optional[ExtractionConfig] = None,
    normalizer: Optional[LineNormalizer] = None,
) -> ExtractionResult:
    """
    Convenience function to extract from one log in one call.

    Example:
        index = load_index("logsieve.idx")
        result = extract("failed-job.log", index)
        print(result.render())
    """
    return Extractor(index, config, normalizer).extract(target_log)

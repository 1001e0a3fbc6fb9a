"""
Extraction module: select anomalous line blocks from a target log.

Implements scoring against a frequency index, gap-tolerant grouping,
ranking and excerpt caps.
"""

from .extractor import Extractor, extract
from .grouping import add_context, group_candidates, ignored_lines, rank_and_cap
from .schema import Block, ExtractionResult, LineScore
from .scoring import SCORING_VERSION, LineScorer, reference_count, score_count

__all__ = [
	"Extractor",
	"extract",
	"Block",
	"ExtractionResult",
	"LineScore",
	"LineScorer",
	"SCORING_VERSION",
	"reference_count",
	"score_count",
	"add_context",
	"group_candidates",
	"ignored_lines",
	"rank_and_cap",
]

"""
Grouping of scored lines into blocks, and ranking under size caps.

Design:
- Candidates separated by at most ``max_gap`` other lines share a block
- Ignored lines are barriers: never candidates, never bridged, never
  used as context
- Blocks rank by aggregate score, ties broken by earliest start, so output
  is reproducible for identical input
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

from logsieve.core.config import IgnoreBlock
from logsieve.data.sanitize import clean
from logsieve.data.schema import LogLine
from logsieve.extraction.schema import Block

Span = Tuple[int, int]


def ignored_lines(texts: Sequence[str], ignore_blocks: Sequence[IgnoreBlock]) -> List[bool]:
    """
    Flag lines inside ignore regions.

    A line containing a start marker opens a region; every line up to and
    including the one containing the matching end marker is ignored. A start
    marker inside an open region switches to its own end marker. Start
    markers are searched with one combined pattern.
    """
    flags = [False] * len(texts)
    if not ignore_blocks:
        return flags

    starts = re.compile(
        "|".join(f"(?P<m{i}>{re.escape(block.start)})" for i, block in enumerate(ignore_blocks))
    )
    active_end: Optional[str] = None

    for i, text in enumerate(texts):
        text = clean(text)
        match = starts.search(text)
        if match is not None:
            active_end = ignore_blocks[int(match.lastgroup[1:])].end
            flags[i] = True
            continue
        if active_end is None:
            continue
        flags[i] = True
        if active_end in text:
            active_end = None

    return flags


def group_candidates(
    candidates: Sequence[bool],
    max_gap: int,
    barriers: Optional[Sequence[bool]] = None,
) -> List[Span]:
    """
    Group candidate lines into inclusive ``(start, end)`` spans.

    Two candidates join the same span when at most ``max_gap`` lines lie
    between them and none of those lines is a barrier.
    """
    spans: List[Span] = []
    start: Optional[int] = None
    last = -1

    for i, is_candidate in enumerate(candidates):
        if barriers is not None and barriers[i]:
            if start is not None:
                spans.append((start, last))
                start = None
            continue
        if not is_candidate:
            continue
        if start is not None and i - last - 1 <= max_gap:
            last = i
            continue
        if start is not None:
            spans.append((start, last))
        start = last = i

    if start is not None:
        spans.append((start, last))
    return spans


def add_context(
    spans: Sequence[Span],
    context: int,
    total: int,
    barriers: Optional[Sequence[bool]] = None,
) -> List[Span]:
    """
    Widen spans by up to ``context`` lines each side without overlapping a
    neighbour or crossing a barrier.
    """
    if context <= 0:
        return list(spans)

    def blocked(i: int) -> bool:
        return barriers is not None and barriers[i]

    widened: List[Span] = []
    for k, (start, end) in enumerate(spans):
        floor = widened[-1][1] + 1 if widened else 0
        ceiling = spans[k + 1][0] - 1 if k + 1 < len(spans) else total - 1

        new_start = start
        while new_start > floor and start - new_start < context and not blocked(new_start - 1):
            new_start -= 1
        new_end = end
        while new_end < ceiling and new_end - end < context and not blocked(new_end + 1):
            new_end += 1
        widened.append((new_start, new_end))
    return widened


def aggregate_scores(scores: Sequence[float], cutoff: float, method: str) -> Tuple[float, int]:
    """
    Combine member scores; only scores above ``cutoff`` count.

    Returns:
        Tuple of (aggregate, anomalous_line_count)
    """
    anomalous = [score for score in scores if score > cutoff]
    if not anomalous:
        return 0.0, 0
    if method == "sum":
        return sum(anomalous), len(anomalous)
    if method == "max":
        return max(anomalous), len(anomalous)
    if method == "mean":
        return sum(anomalous) / len(anomalous), len(anomalous)
    raise ValueError(f"Unknown aggregate method: {method}")


def build_block(
    lines: Sequence[LogLine],
    scores: Sequence[float],
    cutoff: float,
    method: str,
    clipped: bool = False,
) -> Block:
    aggregate, anomalous = aggregate_scores(scores, cutoff, method)
    return Block(
        start=lines[0].number,
        end=lines[-1].number,
        lines=list(lines),
        scores=list(scores),
        score=aggregate,
        peak_score=max(scores),
        anomalous_lines=anomalous,
        clipped=clipped,
    )


def clip_block(block: Block, budget: int, cutoff: float, method: str) -> Block:
    """
    Shorten ``block`` to ``budget`` lines, starting at its first anomalous
    line (leading context is dropped first).
    """
    first = next(i for i, score in enumerate(block.scores) if score > cutoff)
    offset = max(0, min(first, block.line_count - budget))
    return build_block(
        block.lines[offset:offset + budget],
        block.scores[offset:offset + budget],
        cutoff,
        method,
        clipped=True,
    )


def rank_and_cap(
    blocks: Sequence[Block],
    cutoff: float,
    method: str,
    max_blocks: Optional[int] = None,
    max_lines: Optional[int] = None,
) -> Tuple[List[Block], int, int]:
    """
    Rank blocks and apply the excerpt caps.

    Blocks are taken best-first. ``max_blocks`` keeps at most that many;
    ``max_lines`` clips the block that exhausts the line budget and drops
    every block after it.

    Returns:
        Tuple of (kept_blocks_in_rank_order, dropped_blocks, clipped_lines)
    """
    ordered = sorted(blocks, key=lambda block: (-block.score, block.start))
    kept: List[Block] = []
    dropped = 0
    clipped_lines = 0
    budget = max_lines

    for block in ordered:
        if max_blocks is not None and len(kept) >= max_blocks:
            dropped += 1
            continue
        if budget is not None:
            if budget <= 0:
                dropped += 1
                continue
            if block.line_count > budget:
                clipped_lines += block.line_count - budget
                block = clip_block(block, budget, cutoff, method)
            budget -= block.line_count
        kept.append(block.model_copy(update={"rank": len(kept)}))

    return kept, dropped, clipped_lines

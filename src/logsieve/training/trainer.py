"""
Corpus trainer: build a frequency index from logs of successful builds.

Design:
- Logs are independent, so they are processed by a bounded worker pool
- Each worker builds a private partial index for one log; the coordinating
  thread merges partials as they complete. Merge is order-independent, so
  the result does not depend on scheduling
- A log contributes a bounded weight per shape, so one log repeating a line
  thousands of times cannot dominate the statistic
- Unreadable logs are skipped with a warning and listed in the summary;
  they never abort the run
- A stop request cancels pending work and returns what was merged so far
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections import Counter
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from logsieve.core.config import TrainerConfig, config as default_config
from logsieve.core.exceptions import (
    IncompatibleIndexError,
    IndexFrozenError,
    LogIngestionError,
    TrainingError,
)
from logsieve.data.ingestion import BaseLogSource, FileLogSource, LogInput, as_log_source, discover_log_files
from logsieve.data.normalizers import LineNormalizer, default_normalizer
from logsieve.index.frequency import FrequencyIndex
from logsieve.training.schema import SkippedLog, TrainingSummary

logger = logging.getLogger(__name__)


def contribution_weights(
    shapes: Iterable[str],
    contribution: str = "once",
    multiplier: int = 1,
) -> Dict[str, int]:
    """
    Weight each distinct shape of one log.
    
    Args:
        shapes: Every shape of the log, repeats included
        contribution: "once" gives each distinct shape weight 1; "log" gives
            ``1 + floor(log2(n))`` for a shape seen n times
        multiplier: Factor applied to every weight
    
    Returns:
        Dict mapping shape -> weight (>= 1)
    """
    occurrences = Counter(shapes)
    if contribution == "once":
        return {shape: multiplier for shape in occurrences}
    if contribution == "log":
        return {shape: n.bit_length() * multiplier for shape, n in occurrences.items()}
    raise ValueError(f"Unknown contribution mode: {contribution}")


def index_log(
    source: BaseLogSource,
    normalizer: LineNormalizer,
    contribution: str = "once",
    multiplier: int = 1,
) -> Tuple[FrequencyIndex, int]:
    """
    Build the partial index of a single log.
    
    Runs inside pool workers, so it only touches its own arguments.
    
    Returns:
        Tuple of (partial_index, line_count)
    
    Raises:
        LogIngestionError: If the source cannot be read
    """
    raw_lines = source.read_raw_lines()
    partial = FrequencyIndex(ruleset=normalizer.ruleset)
    partial.record_document(
        contribution_weights(normalizer.normalize_lines(raw_lines), contribution, multiplier)
    )
    return partial, len(raw_lines)


class CorpusTrainer:
    """
    Parallel trainer producing one finalized frequency index.
    
    Example:
        trainer = CorpusTrainer()
        index = trainer.train(["corpus/passing/"])
        print(trainer.summary.processed, len(index))
    """
    
    def __init__(
        self,
        config: Optional[TrainerConfig] = None,
        normalizer: Optional[LineNormalizer] = None,
    ) -> None:
        self.config = config or default_config.training
        self.normalizer = normalizer or default_normalizer()
        self.summary: Optional[TrainingSummary] = None
        self._stop_event: Optional[threading.Event] = None
        self._running = threading.Lock()
    
    def stop(self) -> None:
        """Request an orderly stop of the current run."""
        if self._stop_event is not None:
            self._stop_event.set()
    
    def _skip(self, skipped: List[SkippedLog], name: str, reason: str) -> None:
        logger.warning(f"Skipping {name}: {reason}")
        skipped.append(SkippedLog(name=name[:200], reason=reason))
    
    def _iter_sources(self, logs: Iterable[LogInput], skipped: List[SkippedLog]) -> Iterator[BaseLogSource]:
        for item in logs:
            paths: Optional[List[Path]] = None
            try:
                if isinstance(item, (str, os.PathLike)) and Path(item).is_dir():
                    paths = discover_log_files(item)
                else:
                    source = as_log_source(item)
            except (LogIngestionError, OSError) as e:
                self._skip(skipped, str(item), str(e))
                continue
            
            if paths is not None:
                for path in paths:
                    try:
                        discovered = FileLogSource(path)
                    except LogIngestionError as e:
                        # Gone or unreadable since discovery
                        self._skip(skipped, str(path), str(e))
                        continue
                    yield discovered
                continue
            
            if source.passed is False:
                self._skip(skipped, source.name, "labeled as a failed build")
                continue
            yield source
    
    def _executor(self) -> Executor:
        if self.config.use_processes:
            return ProcessPoolExecutor(max_workers=self.config.max_workers)
        return ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="logsieve-train")
    
    def train(
        self,
        logs: Iterable[LogInput],
        *,
        base: Optional[FrequencyIndex] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> FrequencyIndex:
        """
        Train an index on a corpus of successful-build logs.
        
        Args:
            logs: Log inputs (paths, directories, sources, bytes or line
                lists). A single path or directory is also accepted.
            base: Existing writable index to extend instead of starting empty
            stop_event: Event that requests an orderly stop when set
        
        Returns:
            The trained index (``base`` itself when given)
        
        Raises:
            TrainingError: If this trainer is already running
            IncompatibleIndexError: If ``base`` uses another ruleset
            IndexFrozenError: If ``base`` is read-only
        """
        if not self._running.acquire(blocking=False):
            raise TrainingError("Trainer is already running")
        try:
            return self._train(logs, base, stop_event)
        finally:
            self._running.release()
    
    def _train(
        self,
        logs: Iterable[LogInput],
        base: Optional[FrequencyIndex],
        stop_event: Optional[threading.Event],
    ) -> FrequencyIndex:
        if isinstance(logs, (str, os.PathLike)):
            logs = [logs]
        
        index = base if base is not None else FrequencyIndex(ruleset=self.normalizer.ruleset)
        if index.ruleset != self.normalizer.ruleset:
            raise IncompatibleIndexError(
                f"Base index ruleset {index.ruleset!r} does not match normalizer {self.normalizer.ruleset!r}"
            )
        if index.frozen:
            raise IndexFrozenError("Cannot train into a read-only index")
        
        stop = stop_event or threading.Event()
        self._stop_event = stop
        summary = TrainingSummary()
        started = time.monotonic()
        last_progress = started
        
        in_flight: Dict[Future, str] = {}
        limit = self.config.max_workers * 2
        sources = self._iter_sources(logs, summary.skipped)
        exhausted = False
        
        logger.info(f"Training with {self.config.max_workers} workers (ruleset {self.normalizer.ruleset})")
        
        with self._executor() as executor:
            while True:
                if stop.is_set():
                    if not summary.stopped:
                        summary.stopped = True
                        logger.warning("Stop requested; cancelling pending logs")
                        for future in in_flight:
                            future.cancel()
                else:
                    while not exhausted and len(in_flight) < limit:
                        source = next(sources, None)
                        if source is None:
                            exhausted = True
                            break
                        if stop.is_set():
                            break
                        future = executor.submit(
                            index_log,
                            source,
                            self.normalizer,
                            self.config.contribution,
                            self.config.multiplier,
                        )
                        in_flight[future] = source.name
                
                if not in_flight:
                    break
                
                done, _ = wait(
                    list(in_flight),
                    timeout=self.config.progress_interval_seconds,
                    return_when=FIRST_COMPLETED,
                )
                for future in done:
                    name = in_flight.pop(future)
                    if future.cancelled():
                        continue
                    try:
                        partial, line_count = future.result()
                    except Exception as e:
                        # Log error but continue with the rest of the corpus
                        logger.warning(f"Skipping {name}: {e}")
                        summary.skipped.append(SkippedLog(name=name, reason=str(e) or type(e).__name__))
                        continue
                    index.merge(partial)
                    summary.processed += 1
                    summary.lines += line_count
                
                now = time.monotonic()
                if now - last_progress >= self.config.progress_interval_seconds:
                    last_progress = now
                    logger.debug(
                        f"Learned from {summary.processed} logs "
                        f"({summary.skipped_count} skipped, {len(index)} shapes)..."
                    )
        
        summary.shapes = len(index)
        summary.documents = index.documents
        summary.duration_seconds = time.monotonic() - started
        self.summary = summary
        self._stop_event = None
        
        if summary.skipped:
            logger.warning(
                f"Training completed with {summary.skipped_count} skipped logs "
                f"out of {summary.processed + summary.skipped_count}"
            )
        logger.info(
            f"Trained on {summary.processed} logs, {summary.lines} lines: "
            f"{summary.shapes} shapes, {summary.documents} documents"
            + (" (stopped early)" if summary.stopped else "")
        )
        return index


def train(
    logs: Iterable[LogInput],
    config: Optional[TrainerConfig] = None,
    normalizer: Optional[LineNormalizer] = None,
) -> FrequencyIndex:
    """
    Convenience function to train an index in one call.
    
    Example:
        index = train(["corpus/passing/"])
        save_index(index, "logsieve.idx")
    """
    return CorpusTrainer(config, normalizer).train(logs)

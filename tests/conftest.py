"""
Pytest configuration and shared fixtures.

Provides a small corpus of successful-build logs, a trained index and test
configurations for unit and integration tests.
"""

from pathlib import Path
from typing import List

import pytest

from logsieve.core.config import ExtractionConfig, TrainerConfig
from logsieve.data.normalizers import LineNormalizer
from logsieve.index.frequency import FrequencyIndex
from logsieve.training.trainer import CorpusTrainer

BUILD_HASHES = ["3f9a1c2e7b4d", "77cd0e1f2a3b", "a1b2c3d4e5f6"]
COMMON_LINE = "running tests... ok"
PANIC_LINE = "panic: index out of bounds at foo.rs:42"


def make_passing_log(build_hash: str) -> List[str]:
    """A successful log: the common line 10 times and one unique hash line."""
    return [COMMON_LINE] * 10 + [f"build hash {build_hash}"]


@pytest.fixture
def normalizer() -> LineNormalizer:
    return LineNormalizer()


@pytest.fixture
def passing_logs() -> List[List[str]]:
    """
    Fixture providing three successful-build logs as line lists.
    
    Returns:
        List of logs, each a list of raw lines
    """
    return [make_passing_log(build_hash) for build_hash in BUILD_HASHES]


@pytest.fixture
def corpus_dir(tmp_path, passing_logs) -> Path:
    """
    Fixture writing the passing logs to a directory, one file per log.
    
    Returns:
        Path: Directory containing job-0.log, job-1.log, job-2.log
    """
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    for i, lines in enumerate(passing_logs):
        (corpus / f"job-{i}.log").write_text("\n".join(lines) + "\n", encoding="utf-8")
    return corpus


@pytest.fixture
def trained_index(passing_logs) -> FrequencyIndex:
    """Index trained on the passing logs, frozen like a loaded index."""
    trainer = CorpusTrainer(TrainerConfig(max_workers=2))
    return trainer.train(passing_logs).freeze()


@pytest.fixture
def ok_index(normalizer) -> FrequencyIndex:
    """
    Fixture providing a tiny index where only "ok" is normal.
    
    "ok" was seen in all 3 recorded documents, so it scores 0.
    """
    index = FrequencyIndex(ruleset=normalizer.ruleset)
    for _ in range(3):
        index.record_document({"ok": 1})
    return index.freeze()


@pytest.fixture
def extraction_config() -> ExtractionConfig:
    """Extraction settings without caps, for tests that count blocks."""
    return ExtractionConfig(cutoff=0.5, max_gap=0, max_blocks=None, max_lines=None)


def pytest_configure(config):
    """
    Pytest hook for custom configuration.
    
    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )

"""
Integration test for the full train, persist and extract pipeline.

Tests end-to-end flow from a directory of successful logs to the excerpt
of a failed log.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from logsieve import (
    CorpusTrainer,
    Extractor,
    LineNormalizer,
    load_index,
    save_index,
)
from logsieve.core.config import ExtractionConfig, TrainerConfig
from logsieve.index.storage import load_or_create_index

pytestmark = pytest.mark.integration


FAILED_LOG = """\
[CI_JOB_NAME=linux-x64]
2024-03-01T12:00:00Z Starting job
running tests... ok
running tests... ok
thread 'main' panicked at /tmp/build-9e9e/src/main.rs:42:7
note: run with `RUST_BACKTRACE=1` for a backtrace
running tests... ok
build hash 0badc0ffee12
"""


@pytest.fixture
def corpus(tmp_path):
    """Directory of successful logs sharing boilerplate but not hashes or paths."""
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    for i, build_hash in enumerate(["3f9a1c2e7b4d", "77cd0e1f2a3b", "a1b2c3d4e5f6", "0f0e0d0c0b0a1"]):
        (corpus / f"job-{i}.log").write_text(
            f"2024-02-{10 + i}T08:00:00Z Starting job\n"
            + "running tests... ok\n" * 10
            + f"compiled /tmp/build-{i}{i}{i}/target in {i + 1}.5s\n"
            + f"build hash {build_hash}\n",
            encoding="utf-8",
        )
    (corpus / ".DS_Store").write_bytes(b"\x00\x00\x00\x01Bud1")
    return corpus


class TestFullPipeline:
    """Test end-to-end pipeline from corpus to excerpt."""
    
    def test_train_save_load_extract(self, tmp_path, corpus):
        normalizer = LineNormalizer()
        trainer = CorpusTrainer(TrainerConfig(max_workers=2), normalizer)
        
        index = trainer.train(corpus)
        assert trainer.summary.processed == 4
        assert trainer.summary.skipped == []
        
        path = tmp_path / "corpus.idx"
        save_index(index, path)
        loaded = load_index(path, expected_ruleset=normalizer.ruleset)
        assert loaded == index
        assert loaded.lookup("compiled <PATH> in <DUR>") == 4
        
        failed = tmp_path / "failed.log"
        failed.write_text(FAILED_LOG, encoding="utf-8")
        result = Extractor(loaded, ExtractionConfig(max_gap=1), normalizer).extract(failed)
        
        assert len(result.blocks) == 2
        panic, job_name = result.by_rank()
        assert (panic.start, panic.end) == (4, 5)
        assert panic.anomalous_lines == 2
        assert (job_name.start, job_name.end) == (0, 0)
        assert result.variables == {"job_name": "linux-x64"}
        assert result.render() == (
            "[CI_JOB_NAME=linux-x64]\n"
            "---\n"
            "thread 'main' panicked at /tmp/build-9e9e/src/main.rs:42:7\n"
            "note: run with `RUST_BACKTRACE=1` for a backtrace"
        )
    
    def test_incremental_training(self, tmp_path, corpus):
        path = tmp_path / "corpus.idx"
        normalizer = LineNormalizer()
        trainer = CorpusTrainer(normalizer=normalizer)
        
        files = sorted(corpus.glob("*.log"))
        for batch in (files[:2], files[2:]):
            index = load_or_create_index(path, normalizer.ruleset)
            save_index(trainer.train(batch, base=index), path)
        
        assert load_index(path) == CorpusTrainer(normalizer=normalizer).train(corpus)
    
    def test_concurrent_extractions_share_index(self, corpus):
        index = CorpusTrainer().train(corpus).freeze()
        extractor = Extractor(index, ExtractionConfig(max_gap=1))
        logs = [FAILED_LOG.splitlines()] * 16
        
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(extractor.extract, logs))
        
        expected = results[0].model_dump_json()
        assert all(result.model_dump_json() == expected for result in results)
        assert len(index) == len(CorpusTrainer().train(corpus))

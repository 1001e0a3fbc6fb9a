"""
Unit tests for the corpus trainer.

Tests contribution weights, skipping of unusable logs, stop requests and
independence from worker scheduling.
"""

import threading

import pytest

from logsieve.core.config import NormalizerConfig, TrainerConfig
from logsieve.core.exceptions import (
    IncompatibleIndexError,
    IndexFrozenError,
    TrainingError,
)
from logsieve.data.ingestion import FileLogSource, LinesLogSource
from logsieve.data.normalizers import LineNormalizer
from logsieve.index.frequency import FrequencyIndex
from logsieve.training import trainer as trainer_module
from logsieve.training.trainer import (
    CorpusTrainer,
    contribution_weights,
    index_log,
    train,
)


class TestContributionWeights:
    """Test per-log weighting."""
    
    def test_once(self):
        weights = contribution_weights(["a", "a", "a", "b"])
        
        assert weights == {"a": 1, "b": 1}
    
    def test_log_scaled(self):
        weights = contribution_weights(["a"] * 1000 + ["b", "c", "c"], contribution="log")
        
        assert weights == {"a": 10, "b": 1, "c": 2}
    
    def test_multiplier(self):
        weights = contribution_weights(["a", "a"], multiplier=5)
        
        assert weights == {"a": 5}
    
    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            contribution_weights(["a"], contribution="all")


def test_index_log(normalizer):
    source = LinesLogSource(["commit 3f9a1c2e7b", "commit 77cd0e1f2a", "done"])
    
    partial, line_count = index_log(source, normalizer)
    
    assert line_count == 3
    assert partial.documents == 1
    assert partial.lookup("commit <HASH>") == 1
    assert partial.lookup("done") == 1


class TestCorpusTrainer:
    """Test training runs."""
    
    def test_counts_each_log_once(self, passing_logs):
        """Test that a line repeated ten times per log counts once per log."""
        trainer = CorpusTrainer(TrainerConfig(max_workers=2))
        
        index = trainer.train(passing_logs)
        
        assert index.documents == 3
        assert index.lookup("running tests... ok") == 3
        assert index.lookup("build hash <HASH>") == 3
        assert len(index) == 2
        assert trainer.summary.processed == 3
        assert trainer.summary.lines == 33
        assert trainer.summary.skipped == []
        assert not trainer.summary.stopped
    
    def test_zero_logs(self):
        trainer = CorpusTrainer()
        
        index = trainer.train([])
        
        assert len(index) == 0
        assert index.documents == 0
        assert trainer.summary.processed == 0
    
    def test_directory_input(self, corpus_dir):
        trainer = CorpusTrainer(TrainerConfig(max_workers=2))
        
        index = trainer.train(corpus_dir)
        
        assert index.documents == 3
        assert index.lookup("running tests... ok") == 3
    
    def test_directory_in_list(self, corpus_dir, passing_logs):
        index = CorpusTrainer().train([corpus_dir, passing_logs[0]])
        
        assert index.documents == 4
    
    def test_skips_unreadable_logs(self, tmp_path, passing_logs):
        binary = tmp_path / "core.dump"
        binary.write_bytes(b"\x7fELF\x00\x00\x00")
        trainer = CorpusTrainer(TrainerConfig(max_workers=2))
        
        index = trainer.train([binary, tmp_path / "missing.log", *passing_logs])
        
        assert index.documents == 3
        assert trainer.summary.processed == 3
        assert trainer.summary.skipped_count == 2
        assert {skip.name for skip in trainer.summary.skipped} == {
            str(binary),
            str(tmp_path / "missing.log"),
        }
    
    def test_skips_overlong_path(self, tmp_path, passing_logs):
        good = tmp_path / "good.log"
        good.write_text("\n".join(passing_logs[0]) + "\n")
        trainer = CorpusTrainer()
        
        index = trainer.train([str(good), "x" * 5000])
        
        assert index.documents == 1
        assert trainer.summary.processed == 1
        assert trainer.summary.skipped_count == 1
    
    def test_skips_file_removed_after_discovery(self, corpus_dir, monkeypatch):
        """Test that a file vanishing between listing and reading is skipped."""
        def listing_then_unlink(root):
            paths = real_discover(root)
            paths[1].unlink()
            return paths
        
        real_discover = trainer_module.discover_log_files
        monkeypatch.setattr(trainer_module, "discover_log_files", listing_then_unlink)
        trainer = CorpusTrainer()
        
        index = trainer.train(corpus_dir)
        
        assert index.documents == 2
        assert trainer.summary.processed == 2
        assert [skip.name for skip in trainer.summary.skipped] == [str(corpus_dir / "job-1.log")]
    
    def test_skips_failed_builds(self, tmp_path, passing_logs):
        failed = tmp_path / "failed.log"
        failed.write_text("panic: boom\n")
        trainer = CorpusTrainer()
        
        index = trainer.train([FileLogSource(failed, passed=False), *passing_logs])
        
        assert index.lookup("panic: boom") is None
        assert trainer.summary.skipped[0].reason == "labeled as a failed build"
    
    def test_log_contribution_mode(self):
        trainer = CorpusTrainer(TrainerConfig(contribution="log"))
        
        index = trainer.train([["x"] * 8, ["x"]])
        
        assert index.lookup("x") == 5
        assert index.document_frequency("x") == 2
    
    def test_worker_count_does_not_change_result(self, passing_logs):
        logs = passing_logs * 5 + [["unique line %d" % i] for i in range(20)]
        
        single = CorpusTrainer(TrainerConfig(max_workers=1)).train(logs)
        many = CorpusTrainer(TrainerConfig(max_workers=4)).train(logs)
        
        assert single == many
        assert single.serialize() == many.serialize()
    
    @pytest.mark.slow
    def test_process_pool_matches_thread_pool(self, corpus_dir, passing_logs):
        logs = [corpus_dir, *passing_logs]
        
        threaded = CorpusTrainer(TrainerConfig(max_workers=2)).train(logs)
        processes = CorpusTrainer(TrainerConfig(max_workers=2, use_processes=True)).train(logs)
        
        assert threaded == processes
    
    def test_extends_base_index(self, passing_logs):
        trainer = CorpusTrainer()
        base = trainer.train(passing_logs[:1])
        
        result = trainer.train(passing_logs[1:], base=base)
        
        assert result is base
        assert base.documents == 3
        assert base == CorpusTrainer().train(passing_logs)
    
    def test_rejects_frozen_base(self, passing_logs):
        base = FrequencyIndex().freeze()
        
        with pytest.raises(IndexFrozenError):
            CorpusTrainer().train(passing_logs, base=base)
    
    def test_rejects_base_with_other_ruleset(self, passing_logs):
        base = FrequencyIndex(ruleset="v1:other:hash7")
        
        with pytest.raises(IncompatibleIndexError):
            CorpusTrainer().train(passing_logs, base=base)
    
    def test_custom_normalizer_sets_ruleset(self, passing_logs):
        normalizer = LineNormalizer(NormalizerConfig(rules=["path"]))
        
        index = CorpusTrainer(normalizer=normalizer).train(passing_logs)
        
        assert index.ruleset == normalizer.ruleset
        assert index.lookup("build hash 3f9a1c2e7b4d") == 1
    
    def test_stop_before_start(self, passing_logs):
        """Test that a pre-set stop event yields an empty, flagged result."""
        stop = threading.Event()
        stop.set()
        trainer = CorpusTrainer()
        
        index = trainer.train(passing_logs, stop_event=stop)
        
        assert len(index) == 0
        assert trainer.summary.stopped
        assert trainer.summary.processed == 0
    
    def test_stop_keeps_merged_work(self, passing_logs):
        """Test that stopping mid-run returns a consistent partial index."""
        trainer = CorpusTrainer(TrainerConfig(max_workers=1))
        
        def logs():
            yield passing_logs[0]
            yield passing_logs[1]
            trainer.stop()
            yield passing_logs[2]
        
        index = trainer.train(logs())
        
        assert trainer.summary.stopped
        assert index.documents == trainer.summary.processed
        assert index.documents <= 2
        assert (index.lookup("running tests... ok") or 0) == index.documents
    
    def test_rejects_concurrent_runs(self, passing_logs):
        trainer = CorpusTrainer()
        trainer._running.acquire()
        try:
            with pytest.raises(TrainingError):
                trainer.train(passing_logs)
        finally:
            trainer._running.release()
    
    def test_module_level_train(self, passing_logs):
        assert train(passing_logs).documents == 3

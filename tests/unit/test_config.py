"""
Unit tests for configuration and logging setup.
"""

import logging

import pytest
from pydantic import ValidationError

from logsieve.core.config import (
    Config,
    ExtractionConfig,
    IgnoreBlock,
    NormalizerConfig,
    TrainerConfig,
)
from logsieve.core.logging_config import setup_logging


class TestValidation:
    """Test that out-of-range settings are rejected."""
    
    def test_defaults(self):
        cfg = ExtractionConfig()
        
        assert cfg.cutoff == 0.5
        assert cfg.max_gap == 2
        assert cfg.aggregate == "sum"
        assert cfg.scoring.reference == "documents"
    
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"cutoff": 1.5},
            {"max_gap": -1},
            {"max_blocks": 0},
            {"max_lines": 0},
            {"aggregate": "median"},
        ],
    )
    def test_invalid_extraction_settings(self, kwargs):
        with pytest.raises(ValidationError):
            ExtractionConfig(**kwargs)
    
    def test_invalid_trainer_settings(self):
        with pytest.raises(ValidationError):
            TrainerConfig(max_workers=0)
        with pytest.raises(ValidationError):
            TrainerConfig(contribution="all")
    
    def test_hash_length_bounds(self):
        with pytest.raises(ValidationError):
            NormalizerConfig(hash_min_length=2)
    
    def test_ignore_block_markers_required(self):
        with pytest.raises(ValidationError):
            IgnoreBlock(start="", end="x")
    
    def test_caps_can_be_disabled(self):
        cfg = ExtractionConfig(max_blocks=None, max_lines=None)
        
        assert cfg.max_blocks is None
        assert cfg.max_lines is None


class TestEnvironment:
    """Test environment overrides."""
    
    def test_nested_override(self, monkeypatch):
        monkeypatch.setenv("LOGSIEVE_EXTRACTION__MAX_GAP", "5")
        monkeypatch.setenv("LOGSIEVE_TRAINING__MAX_WORKERS", "8")
        
        cfg = Config()
        
        assert cfg.extraction.max_gap == 5
        assert cfg.training.max_workers == 8
    
    def test_top_level_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOGSIEVE_INDEX_PATH", str(tmp_path / "x.idx"))
        
        assert Config().index_path == tmp_path / "x.idx"


class TestLogging:
    """Test logger setup."""
    
    def test_console_only_by_default(self):
        logger = setup_logging("logsieve.test.console", Config())
        
        assert len(logger.handlers) == 1
        assert setup_logging("logsieve.test.console") is logger
        assert len(logger.handlers) == 1
    
    def test_file_handler(self, tmp_path):
        settings = Config(log_to_file=True, logs_dir=tmp_path / "logs", log_level="DEBUG")
        
        logger = setup_logging("logsieve.test.file", settings)
        try:
            logger.debug("hello")
            for handler in logger.handlers:
                handler.flush()
            
            assert logger.level == logging.DEBUG
            assert "hello" in (tmp_path / "logs" / "logsieve.test.file.log").read_text()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

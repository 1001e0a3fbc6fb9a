"""
Application configuration for logsieve.

Provides environment-aware settings with conservative defaults. Masking rules,
score formula, grouping thresholds and caps are all configurable so that
product tuning never needs code changes.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NormalizerConfig(BaseModel):
	"""
	Line normalizer configuration.

	Notes:
	- rules: enabled masking rules. Matching precedence is fixed by the
	  normalizer, not by the order given here.
	- hash_min_length: shortest hex word treated as a hash.

	Changing either value changes the ruleset tag, which makes indexes built
	with the old values unloadable.
	"""

	rules: List[str] = Field(
		default_factory=lambda: [
			"uuid",
			"timestamp",
			"path",
			"address",
			"hash",
			"linecol",
			"duration",
		]
	)
	hash_min_length: int = Field(7, ge=4, le=64)


class ScoringConfig(BaseModel):
	"""
	Anomaly score configuration.

	Rationale:
	- "documents" compares a shape's count to the number of training logs,
	  which is what a count means when each log contributes once.
	- "max" and "median" compare against the index's own count distribution
	  and suit indexes trained with log-scaled contributions.
	"""

	reference: Literal["documents", "max", "median"] = "documents"


class IgnoreBlock(BaseModel):
	"""Plain-text markers delimiting a region excluded from extraction."""

	start: str = Field(..., min_length=1)
	end: str = Field(..., min_length=1)


class ExtractionConfig(BaseModel):
	"""
	Extraction configuration.

	Notes:
	- cutoff: lines scoring strictly above it are candidates.
	- max_gap: non-candidate lines allowed between candidates of one block.
	- max_blocks / max_lines: excerpt caps (None disables a cap).
	- aggregate: how member scores combine into a block score.
	- context_lines: neighbouring lines attached to each block.
	"""

	cutoff: float = Field(0.5, ge=0.0, le=1.0)
	max_gap: int = Field(2, ge=0)
	max_blocks: Optional[int] = Field(10, ge=1)
	max_lines: Optional[int] = Field(200, ge=1)
	aggregate: Literal["sum", "max", "mean"] = "sum"
	context_lines: int = Field(0, ge=0)
	blank_lines_are_normal: bool = True
	ignore_blocks: List[IgnoreBlock] = Field(default_factory=list)
	scoring: ScoringConfig = ScoringConfig()


class TrainerConfig(BaseModel):
	"""
	Corpus trainer configuration.

	Notes:
	- contribution: "once" counts a shape at most once per log; "log" grows
	  with log2 of its repetitions inside one log.
	- multiplier: weight applied to every contribution of a run.
	- use_processes: process pool instead of thread pool.
	"""

	max_workers: int = Field(4, ge=1)
	use_processes: bool = False
	contribution: Literal["once", "log"] = "once"
	multiplier: int = Field(1, ge=1)
	progress_interval_seconds: float = Field(1.0, gt=0.0)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="LOGSIEVE_",
		env_nested_delimiter="__",
		env_file=".env",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	log_to_file: bool = Field(False, description="Also write logs under logs_dir")
	index_path: Path = Field(Path("logsieve.idx"), description="Default index location")
	normalizer: NormalizerConfig = NormalizerConfig()
	extraction: ExtractionConfig = ExtractionConfig()
	training: TrainerConfig = TrainerConfig()


config = Config()

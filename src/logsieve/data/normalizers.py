"""
Line normalization: mask incidental substrings so lines compare by shape.

Two lines that differ only in a temp directory, a commit hash, a timestamp or
a ``file:line:col`` locator map to the same shape, and therefore share the
same frequency statistics.

Design:
- Cleaning first (ANSI escapes, whitespace, control characters)
- All masking rules compiled into one alternation regex with one named group
  per rule, so each line is scanned once regardless of the rule count
- Earlier rules win when two rules could match at the same position
- Every match is replaced by a fixed per-rule placeholder
- The enabled rules and their parameters form a versioned ruleset tag;
  indexes built under a different tag are rejected
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from logsieve.core.config import NormalizerConfig
from logsieve.core.exceptions import ConfigurationError
from logsieve.data.sanitize import clean

logger = logging.getLogger(__name__)

# Bump whenever a rule pattern or placeholder changes.
RULESET_VERSION = 1

_DATE = r"\d{4}-\d{2}-\d{2}"
_TIME = r"\d{1,2}:\d{2}:\d{2}(?:[.,]\d+)?"
_ZONE = r"(?:Z|[+-]\d{2}:?\d{2})?"
_PATH_CHARS = r"[\w.@+~-]"


@dataclass(frozen=True)
class MaskingRule:
    """A pattern class and the placeholder that replaces its matches."""

    name: str
    placeholder: str
    build: Callable[[NormalizerConfig], str]


# Precedence order.
MASKING_RULES: List[MaskingRule] = [
    MaskingRule(
        "uuid",
        "<UUID>",
        lambda cfg: r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b",
    ),
    MaskingRule(
        "timestamp",
        "<TS>",
        lambda cfg: rf"\b(?:{_DATE}(?:[T ]{_TIME}{_ZONE})?|{_TIME}{_ZONE})(?![\d:])",
    ),
    MaskingRule(
        "path",
        "<PATH>",
        lambda cfg: (
            rf"(?<![\w.:/~-])~?/{_PATH_CHARS}+(?:/{_PATH_CHARS}+)*/?"
            rf"|\b[A-Za-z]:\\(?:{_PATH_CHARS}+\\?)*"
        ),
    ),
    MaskingRule(
        "address",
        "<ADDR>",
        lambda cfg: r"\b0[xX][0-9a-fA-F]+\b|\b\d{8,}\b",
    ),
    MaskingRule(
        "hash",
        "<HASH>",
        lambda cfg: (
            r"\b(?=[0-9a-fA-F]*\d)(?=[0-9a-fA-F]*[a-fA-F])"
            rf"[0-9a-fA-F]{{{cfg.hash_min_length},}}\b"
        ),
    ),
    MaskingRule(
        "linecol",
        ":<LINECOL>",
        lambda cfg: r"(?<=\S):\d+(?::\d+)?\b",
    ),
    MaskingRule(
        "duration",
        "<DUR>",
        lambda cfg: r"\b\d+(?:\.\d+)?(?:ms|us|ns|s|m|h)\b",
    ),
]

_RULES_BY_NAME: Dict[str, MaskingRule] = {rule.name: rule for rule in MASKING_RULES}


class LineNormalizer:
    """
    Maps raw log lines to normalized shapes.
    
    The rule set is fixed at construction. Instances hold no mutable state
    and can be shared freely between threads.
    
    Example:
        >>> normalizer = LineNormalizer()
        >>> normalizer.normalize("error in /tmp/build-3f9a/main.rs:12:5")
        'error in <PATH>:<LINECOL>'
    """
    
    def __init__(self, config: Optional[NormalizerConfig] = None):
        """
        Compile the enabled masking rules.
        
        Args:
            config: Normalizer settings (defaults to all rules enabled)
        
        Raises:
            ConfigurationError: If a rule name is unknown
        """
        self.config = config or NormalizerConfig()
        
        unknown = sorted(set(self.config.rules) - set(_RULES_BY_NAME))
        if unknown:
            raise ConfigurationError(f"Unknown masking rules: {', '.join(unknown)}")
        
        enabled = set(self.config.rules)
        self.rules = [rule for rule in MASKING_RULES if rule.name in enabled]
        self._placeholders = {rule.name: rule.placeholder for rule in self.rules}
        
        if self.rules:
            self._pattern: Optional[re.Pattern] = re.compile(
                "|".join(f"(?P<{rule.name}>{rule.build(self.config)})" for rule in self.rules)
            )
        else:
            self._pattern = None
        
        self.ruleset = "v{}:{}:hash{}".format(
            RULESET_VERSION,
            ",".join(rule.name for rule in self.rules),
            self.config.hash_min_length,
        )
    
    def __repr__(self) -> str:
        return f"LineNormalizer(ruleset={self.ruleset!r})"

    def __reduce__(self):
        # Rules hold lambdas; rebuild from config when sent to a worker process.
        return (type(self), (self.config,))

    def _replace(self, match: "re.Match[str]") -> str:
        return self._placeholders[match.lastgroup]
    
    def normalize(self, raw: str) -> str:
        """
        Return the normalized shape of a raw line.
        
        Never fails: text that matches no rule passes through unchanged
        (after cleaning).
        """
        line = clean(raw)
        if self._pattern is None or not line:
            return line
        return self._pattern.sub(self._replace, line)
    
    def normalize_lines(self, lines: Iterable[str]) -> Iterator[str]:
        """Normalize lines lazily, preserving order."""
        for line in lines:
            yield self.normalize(line)


@lru_cache(maxsize=1)
def default_normalizer() -> LineNormalizer:
    """Normalizer built from the default rule set."""
    return LineNormalizer()


def normalize_line(raw: str) -> str:
    """Normalize one line with the default rule set."""
    return default_normalizer().normalize(raw)

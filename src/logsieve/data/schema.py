"""
Canonical line schema for the analysis engine.

A log is an ordered sequence of LogLine objects. Lines keep their raw text;
the normalized shape is derived on demand by the line normalizer and never
stored on the line itself.

Design rationale:
- Lines are identified by their 0-based position in the source log
- Lines are immutable once read
- Shapes are plain strings so they hash and compare cheaply
"""

from pydantic import BaseModel, ConfigDict, Field

# Canonical form of a line after masking variable substrings.
NormalizedShape = str


class LogLine(BaseModel):
    """
    A single line of text from a log.
    
    Attributes:
        number: 0-based ordinal position within the source log
        text: Decoded line text without its line terminator
    """
    
    model_config = ConfigDict(frozen=True)
    
    number: int = Field(
        ...,
        ge=0,
        description="0-based position in the source log"
    )
    
    text: str = Field(
        ...,
        description="Raw decoded line text"
    )

"""
Line splitting and cleaning.

Build logs carry terminal noise: colour escapes, carriage-return progress
bars, tabs and stray control bytes. Cleaning removes that noise before
masking so it never leaks into a shape.
"""

import re
from typing import List

# Catches most escape sequences; the rare ones that end in a non-letter
# are left alone. Bodies are at most 32 characters; a bare ESC is removed
# by the control-character pass.
_ANSI_ESCAPES = re.compile(r"\x1b[^a-zA-Z\x1b]{0,32}[a-zA-Z]")
_WHITESPACE = re.compile(r"\s")
_CONTROL = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """
    Split decoded log text into lines.
    
    ``\\r\\n``, ``\\r`` and ``\\n`` all end a line. A trailing line break does
    not produce an extra empty line; blank lines inside the text are kept so
    line numbers match the source.
    """
    if not text:
        return []
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def clean(line: str) -> str:
    """
    Clean up a raw line:
    
    - removes most ANSI escape codes
    - replaces every (Unicode) whitespace character with a single space
    - removes control characters
    - strips trailing whitespace
    """
    line = _ANSI_ESCAPES.sub("", line)
    line = _WHITESPACE.sub(" ", line)
    line = _CONTROL.sub("", line)
    return line.rstrip()


def is_blank(line: str) -> bool:
    return not line.strip()

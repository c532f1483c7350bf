"""
Line Classifier and Line Cursor
===============================

Every stage of the toolchain looks at source text one line at a time.
This module provides the two primitives they share:

- **classify_line**: split a raw line into label / instruction / comment
- **LineCursor**: an owned, front-to-back cursor over a line sequence

Line Layout
-----------
A MACRO-10 line has the shape::

    LABEL:  INSTRUCTION ARGS        ;COMMENT

The classifier keeps all layout whitespace so that the three parts
concatenate back to the original text. Whitespace after the label (or
leading whitespace when there is no label) belongs to the label; the
whitespace before ``;`` belongs to the comment::

    >>> line = classify_line("FOO:\\tLDAI\\t1\\t;LOAD ONE")
    >>> line.label, line.instruction, line.comment
    ('FOO:\\t', 'LDAI\\t1', '\\t;LOAD ONE')

Stages that rewrite an instruction rebuild the line as
``label + new_instruction + comment``.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from msbasic_port.errors import SourceLocation


COMMENT_CHAR = ";"

LABEL_PATTERN = re.compile(r"^([A-Z\d]+):(\s*)(.*)$", re.DOTALL)
INDENT_PATTERN = re.compile(r"^(\s+)(.*)$", re.DOTALL)


# =============================================================================
# Line Classifier
# =============================================================================

@dataclass(frozen=True)
class SourceLine:
    """
    Classified view of one source line.

    Attributes:
        label: Label with its colon and layout whitespace ("" if none)
        instruction: Instruction body without layout whitespace
        comment: Comment including ';' and the whitespace before it
        text: The original line
    """
    label: str
    instruction: str
    comment: str
    text: str

    def with_instruction(self, instruction: str) -> str:
        """Rebuild the line around a replacement instruction."""
        return f"{self.label}{instruction}{self.comment}"


def classify_line(text: str) -> SourceLine:
    """
    Split a line into label, instruction and trailing comment.

    Never fails: a line without label or comment yields empty strings
    for those parts.
    """
    comment = ""
    instruction = text
    index = text.find(COMMENT_CHAR)
    if index != -1:
        while index > 0 and text[index - 1].isspace():
            index -= 1
        comment = text[index:]
        instruction = text[:index]

    label = ""
    match = LABEL_PATTERN.match(instruction)
    if match:
        label = f"{match.group(1)}:{match.group(2)}"
        instruction = match.group(3)

    match = INDENT_PATTERN.match(instruction)
    if match:
        label += match.group(1)
        instruction = match.group(2)

    return SourceLine(label, instruction, comment, text)


# =============================================================================
# Line Cursor
# =============================================================================

class LineCursor:
    """
    Front-to-back cursor over an immutable sequence of lines.

    Stages that consume a data-dependent number of lines (block extraction)
    share one cursor instead of mutating a shared list. The cursor copies
    its input, so the caller's sequence is never modified.

    Attributes:
        filename: Source name used for error locations
    """

    def __init__(self, lines: Iterable[str], filename: str = "<input>"):
        self._lines: tuple[str, ...] = tuple(lines)
        self._position = 0
        self.filename = filename

    def __bool__(self) -> bool:
        return self._position < len(self._lines)

    def __len__(self) -> int:
        """Number of lines not yet consumed."""
        return len(self._lines) - self._position

    def pop(self) -> str:
        """Consume and return the next line."""
        if not self:
            raise IndexError("pop from exhausted LineCursor")
        line = self._lines[self._position]
        self._position += 1
        return line

    def rest(self) -> list[str]:
        """Consume and return all remaining lines."""
        remaining = list(self._lines[self._position:])
        self._position = len(self._lines)
        return remaining

    @property
    def line_number(self) -> int:
        """1-indexed number of the most recently consumed line (0 before any)."""
        return self._position

    def location(self, column: int = 0) -> SourceLocation:
        """Location of the most recently consumed line."""
        return SourceLocation(self.filename, self._position, column)

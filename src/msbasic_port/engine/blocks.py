"""
Block Extractor
===============

MACRO-10 delimits macro bodies, conditional bodies and repeat templates
with angle brackets, and those bodies may span many lines and contain
further bracketed text::

    IFE     REALIO-3,<
            LDAI    <BUF&255>       ;NESTED TEXT IS OPAQUE
            STA     TXTPTR>         ;TRAILING TEXT AFTER THE BLOCK

``extract_block`` consumes exactly the lines belonging to such a block.
It counts delimiter depth character by character; nested brackets are
passed through as ordinary text, which is what makes nesting transparent.

``extract_directive_block`` applies the same counting principle to the
``.IF``/``.ENDIF`` directive lines produced by the translator, one level
up: whole lines are the unit instead of characters.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from msbasic_port.errors import SourceLocation, UnterminatedBlockError
from msbasic_port.engine.lines import LineCursor


# Any .IF-family directive (.IF, .IFDEF, .IFNDEF, ...) opens a nesting level
DIRECTIVE_START = ".IF"
DIRECTIVE_END = ".ENDIF"

# Only plain ".IF <condition>" is evaluated
CONDITIONAL_PATTERN = re.compile(r"^\.IF\s+(.*?)\s*$")


@dataclass
class Block:
    """
    A delimiter-bounded span of source text.

    Attributes:
        lines: Body lines, without the delimiters
        trailing: Text following the closing delimiter on its line
        closing: The closing directive line as written (directive blocks)
    """
    lines: list[str] = field(default_factory=list)
    trailing: str = ""
    closing: str = ""


def extract_block(
    leftover: str,
    cursor: LineCursor,
    open_char: str = "<",
    close_char: str = ">",
    location: Optional[SourceLocation] = None,
) -> Block:
    """
    Extract a bracketed block starting just after its opening delimiter.

    Args:
        leftover: Text of the opening line after the opening delimiter
        cursor: Cursor over the lines following the opening line
        open_char: Opening delimiter character
        close_char: Closing delimiter character
        location: Location of the opening line, for error reporting

    Returns:
        The block body and the text after the closing delimiter.

    Raises:
        UnterminatedBlockError: If the input ends before depth returns to 0
    """
    lines: list[str] = []
    text: Optional[str] = leftover
    depth = 1
    while text is not None:
        buffer = []
        for index, char in enumerate(text):
            if char == open_char:
                depth += 1
            elif char == close_char:
                depth -= 1
            if depth == 0:
                lines.append("".join(buffer))
                # opening delimiter was the last character of its line
                if lines[0] == "":
                    lines.pop(0)
                return Block(lines, text[index + 1:])
            buffer.append(char)
        lines.append(text)
        text = cursor.pop() if cursor else None

    raise UnterminatedBlockError(close_char, location=location)


def is_directive_start(line: str) -> bool:
    return line.startswith(DIRECTIVE_START)


def is_directive_end(line: str) -> bool:
    return line.startswith(DIRECTIVE_END)


def conditional_of(line: str) -> Optional[str]:
    """Condition text of a plain ``.IF`` line, or None for other directives."""
    match = CONDITIONAL_PATTERN.match(line)
    return match.group(1) if match else None


def extract_directive_block(
    cursor: LineCursor,
    location: Optional[SourceLocation] = None,
) -> Block:
    """
    Extract the body of a ``.IF`` directive whose opening line was consumed.

    Nested ``.IF``/``.ENDIF`` pairs stay in the body unchanged. The
    closing ``.ENDIF`` is consumed and kept verbatim in ``closing``.

    Raises:
        UnterminatedBlockError: If no matching .ENDIF is found
    """
    lines: list[str] = []
    depth = 1
    while cursor:
        line = cursor.pop()
        if is_directive_start(line):
            depth += 1
        elif is_directive_end(line):
            depth -= 1
            if depth == 0:
                return Block(lines, closing=line)
        lines.append(line)

    raise UnterminatedBlockError(DIRECTIVE_END, location=location)

"""
Repeat Expander
===============

Unrolls MACRO-10 ``REPEAT count,<template>`` constructs::

        REPEAT  3+ADDPRC,<ASL A>    ->      ASL A
                                            ASL A
                                            ASL A
                                            ASL A      (ADDPRC=1)

The count is either a literal integer or a literal plus a symbol with a
known integer value. The template contributes one line: its second line
when it spans several (the first is the empty remainder of the REPEAT
line), otherwise its only line.
"""

import logging
import re
from typing import Optional

from msbasic_port.engine.blocks import extract_block
from msbasic_port.engine.lines import LineCursor
from msbasic_port.engine.symbols import SymbolTable
from msbasic_port.errors import SourceLocation, UnsupportedExpressionError

logger = logging.getLogger(__name__)


REPEAT_PATTERN = re.compile(r"^(\s*)REPEAT\s+(\S+),\s*<(.*)$")
LITERAL_COUNT = re.compile(r"^\d+$")
SUM_COUNT = re.compile(r"^(\d+)\+([A-Z]+)$")


class RepeatExpander:
    """
    Expands REPEAT constructs using the run's symbol table.

    Attributes:
        symbols: Symbols available to count expressions
        filename: Source name used in error locations
    """

    def __init__(self, symbols: SymbolTable, filename: str = "<input>"):
        self.symbols = symbols
        self.filename = filename

    def count(
        self,
        expression: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> int:
        """
        Evaluate a repeat count.

        Raises:
            UnsupportedExpressionError: For any other form, or an unknown symbol
        """
        if LITERAL_COUNT.match(expression):
            return int(expression)

        match = SUM_COUNT.match(expression)
        if match:
            value = self.symbols.int_value(match.group(2))
            if value is not None:
                return int(match.group(1)) + value
            raise UnsupportedExpressionError(
                expression,
                location=location,
                hint=f"symbol '{match.group(2)}' has no known integer value",
                source_line=source_line,
            )

        raise UnsupportedExpressionError(
            expression,
            location=location,
            hint="repeat counts must be N or N+SYMBOL",
            source_line=source_line,
        )

    def expand(self, lines: list[str]) -> list[str]:
        cursor = LineCursor(lines, self.filename)
        result: list[str] = []
        while cursor:
            line = cursor.pop()
            match = REPEAT_PATTERN.match(line)
            if not match:
                result.append(line)
                continue

            location = cursor.location()
            indent, expression = match.group(1), match.group(2)
            count = self.count(expression, location, line)
            block = extract_block(match.group(3), cursor, location=location)
            if not block.lines:
                continue
            template = block.lines[1] if len(block.lines) > 1 else block.lines[0]
            result.extend(indent + template for _ in range(count))
            logger.debug(f"Repeated '{template.strip()}' {count} time(s) at line {location.line}")

        return result

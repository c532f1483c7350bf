"""
Translation Pipeline
====================

Converts the MACRO-10 source of Microsoft BASIC for the 6502 into
cc65/ca65 syntax. The output still contains every platform variant,
selected by ``.IF``/``.ENDIF`` directives; ``Formatter`` and
``CommodoreFormatter`` flatten it afterwards.

Stages
------
1. clean: comment blocks, titles, label/IF splitting, register commas,
   angle-bracket expressions
2. text-block patches (see ``patches``)
3. ``IFE``/``IFN``/``IF1``/``IF2`` conversion, repeated to a fixed point
   so that nested conditionals are converted from the outside in
4. macro expansion
5. symbol assignments
6. ``REPEAT`` expansion
7. instruction rewriting
8. tab expansion

Example:
    >>> converter = Converter("m6502.asm")
    >>> output = converter.convert(read_lines("m6502.asm"))
"""

import logging
import re
from typing import Optional

from msbasic_port.engine.blocks import extract_block
from msbasic_port.engine.context import PreprocessContext
from msbasic_port.engine.lines import LineCursor, classify_line
from msbasic_port.engine.macros import MacroExpander
from msbasic_port.engine.repeat import RepeatExpander
from msbasic_port.engine.resolver import DEFAULT_MAX_PASSES, resolve_until_unchanged
from msbasic_port.engine.rewriter import InstructionRewriter, parse_octal
from msbasic_port.engine.symbols import VARIABLE_SYMBOLS
from msbasic_port.errors import SourceLocation, UnsupportedExpressionError, UnterminatedBlockError
from msbasic_port.patches import apply_patches

logger = logging.getLogger(__name__)


TAB_SIZE = 8

# =============================================================================
# Clean-up Tables
# =============================================================================

COMMENT_START = "COMMENT "
LABELLED_IF = re.compile(r"^([A-Z]+:)\s+(IF[N,E]\s.*)$")
REGISTER_COMMA = re.compile(r"([AXY]),")

# Expressions whose angle brackets are arithmetic grouping, not blocks
ANGLE_BRACKET_EXPRESSIONS = (
    "<3*ADDPRC>",
    "<2*ADDPRC>",
    "<BUF&255>",
    "<CQTIMR-2>",
    "<BUF/256>*256",
    "LDXYI\t<BUF-1>",
    "<<<LINLEN/CLMWID>-1>*CLMWID>",
    "ISVRET-1-<ISVRET-1>/256*256",
    "<<ISVRET-1>/256>",
)

# =============================================================================
# Conditional Tables
# =============================================================================

IFE_PATTERN = re.compile(r"^IFE\s*(\S+),<(.*)$")
IFN_PATTERN = re.compile(r"^IFN\s*(\S+),<(.*)$")
IF1_PATTERN = re.compile(r"^IF1,<(.*)$")
IF2_PATTERN = re.compile(r"^IF2,<(.*)$")

SYMBOL_EXPRESSION = re.compile(r"^[A-Z]+$")
TARGET_EXPRESSION = re.compile(r"^REALIO-(\d)$")
OR_EXPRESSION = re.compile(r"^([A-Z]+)!([A-Z]+)$")

# IFN-only expressions with a fixed translation
NOT_EQUAL_EXPRESSIONS = {
    "STKEND-511": "STKEND<>511",
    "<<BUF+BUFLEN>/256>-<<BUF-1>/256>": "BUFPAG<>0",
}

# Assembly-time report of the selected configuration (replaces PRINTX)
CONFIG_REPORT = (
    '.OUT .SPRINTF("CONFIG: REALIO=%d", REALIO)',
    ".IF REALIO=1",
    '  .OUT "CONFIG: TARGET=KIM"',
    ".ENDIF",
    ".IF REALIO=2",
    '  .OUT "CONFIG: TARGET=OSI"',
    ".ENDIF",
    ".IF REALIO=3",
    '  .OUT "CONFIG: TARGET=COMMODORE"',
    ".ENDIF",
    ".IF REALIO=4",
    '  .OUT "CONFIG: TARGET=APPLE"',
    ".ENDIF",
    ".IF REALIO=5",
    '  .OUT "CONFIG: TARGET=STM"',
    ".ENDIF",
    ".IF ADDPRC<>0",
    '  .OUT "CONFIG: ADDITIONAL PRECISION"',
    ".ENDIF",
    ".IF LNGERR<>0",
    '  .OUT "CONFIG: LONG ERRORS"',
    ".ENDIF",
    ".IF DISKO<>0",
    '  .OUT "CONFIG: SAVE AND LOAD"',
    ".ENDIF",
    ".IF ROMSW=0",
    '  .OUT "CONFIG: RAM"',
    ".ENDIF",
    ".IF ROMSW<>0",
    '  .OUT "CONFIG: ROM"',
    ".ENDIF",
    ".IF RORSW=0",
    '  .OUT "CONFIG: EMULATE ROR INSTRUCTION"',
    ".ENDIF",
    ".IF RORSW<>0",
    '  .OUT "CONFIG: USE ROR INSTRUCTION"',
    ".ENDIF",
)

SYMBOL_DEFINITION = re.compile(r"^([A-Z]+)\s*={1,2}\s*(.*)$")


def translate_condition(
    expression: str,
    test_equal: bool,
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> str:
    """
    Translate a MACRO-10 IFE/IFN expression into a directive condition.

    IFE assembles its body when the expression is zero, IFN when it is
    not, so ``IFE REALIO-3`` becomes ``REALIO=3``.

    Raises:
        UnsupportedExpressionError: For expressions outside the known set
    """
    if expression == "REALIO":
        expression = "REALIO-0"
    operator = "=" if test_equal else "<>"

    if SYMBOL_EXPRESSION.match(expression):
        return f"{expression}{operator}0"

    match = TARGET_EXPRESSION.match(expression)
    if match:
        return f"REALIO{operator}{match.group(1)}"

    match = OR_EXPRESSION.match(expression)
    if match:
        return f"({match.group(1)}|{match.group(2)}){operator}0"

    if not test_equal and expression in NOT_EQUAL_EXPRESSIONS:
        return NOT_EQUAL_EXPRESSIONS[expression]

    raise UnsupportedExpressionError(
        expression,
        location=location,
        hint=f"no translation for {'IFE' if test_equal else 'IFN'} with this expression",
        source_line=source_line,
    )


def expand_tabs(lines: list[str], tab_size: int = TAB_SIZE) -> list[str]:
    return [line.expandtabs(tab_size) for line in lines]


# =============================================================================
# Converter
# =============================================================================

class Converter:
    """
    MACRO-10 to ca65 translator.

    Each converter owns a fresh ``PreprocessContext``; create a new one
    per source file.

    Attributes:
        context: Symbols and radix of this run
        max_passes: Safety cap for the IF conversion fixed point
    """

    def __init__(self, filename: str = "<input>", max_passes: int = DEFAULT_MAX_PASSES):
        self.context = PreprocessContext.for_translation(filename)
        self.max_passes = max_passes
        self.macros = MacroExpander(filename=filename)
        self.repeats = RepeatExpander(self.context.symbols, filename=filename)
        self.rewriter = InstructionRewriter(self.context)
        self.conditionals = 0

    @property
    def filename(self) -> str:
        return self.context.filename

    # -------------------------------------------------------------------------
    # Stage 1: clean-up
    # -------------------------------------------------------------------------

    def clean(self, lines: list[str]) -> list[str]:
        """
        First clean-up of the raw source.

        Raises:
            UnterminatedBlockError: If a COMMENT block is never closed
        """
        result: list[str] = []
        delimiter: Optional[str] = None
        comment_start = 0

        for line_number, line in enumerate(lines, start=1):
            if delimiter is None and line.startswith(COMMENT_START):
                # the character after "COMMENT " closes the block
                delimiter = line[len(COMMENT_START):len(COMMENT_START) + 1] or None
                comment_start = line_number
                line = "/*"
            elif delimiter is not None and delimiter in line:
                delimiter = None
                line = "*/"

            if "TITLE" in line or line.startswith("SUBTTL") or line.startswith("\fSUBTTL"):
                line = "; " + line.replace("\f", "")

            match = LABELLED_IF.match(line)
            if match:
                result.append(match.group(1))
                line = match.group(2)

            if delimiter is None:
                parsed = classify_line(line)
                if REGISTER_COMMA.search(parsed.instruction):
                    line = parsed.with_instruction(REGISTER_COMMA.sub(r"\1", parsed.instruction))

            for expression in ANGLE_BRACKET_EXPRESSIONS:
                if expression in line:
                    rounded = expression.replace("<", "(").replace(">", ")")
                    line = line.replace(expression, rounded, 1)

            result.append(line)

        if delimiter is not None:
            raise UnterminatedBlockError(
                delimiter,
                location=SourceLocation(self.filename, comment_start),
            )
        return result

    # -------------------------------------------------------------------------
    # Stage 3: conditional assembly
    # -------------------------------------------------------------------------

    def convert_if(self, lines: list[str]) -> list[str]:
        """Convert the outermost MACRO-10 conditionals (one pass)."""
        cursor = LineCursor(lines, self.filename)
        result: list[str] = []

        while cursor:
            line = cursor.pop()
            location = cursor.location()

            match = IFE_PATTERN.match(line) or IFN_PATTERN.match(line)
            if match:
                test_equal = line.startswith("IFE")
                condition = translate_condition(match.group(1), test_equal, location, line)
                result.extend(self._directive(condition, match.group(2), cursor, location))
                continue

            match = IF1_PATTERN.match(line)
            if match:
                block = extract_block(match.group(1), cursor, location=location)
                # the pass-1 PRINTX report becomes a ca65 .OUT report
                if block.lines and "PRINTX" in block.lines[-1]:
                    result.extend(CONFIG_REPORT)
                continue

            match = IF2_PATTERN.match(line)
            if match:
                block = extract_block(match.group(1), cursor, location=location)
                if not any("PURGE" in body_line for body_line in block.lines):
                    result.extend(block.lines)
                continue

            result.append(line)

        return result

    def _directive(
        self,
        condition: str,
        leftover: str,
        cursor: LineCursor,
        location: SourceLocation,
    ) -> list[str]:
        block = extract_block(leftover, cursor, location=location)
        body = list(block.lines)
        if body and body[-1] == "":
            body.pop()
        if block.trailing:
            last = body.pop() if body else ""
            body.append(last + block.trailing)
        self.conditionals += 1
        return [f".IF {condition}", *body, ".ENDIF"]

    # -------------------------------------------------------------------------
    # Stage 5: symbol assignments
    # -------------------------------------------------------------------------

    def convert_symbols(self, lines: list[str]) -> list[str]:
        """
        Rewrite ``NAME=value`` and ``NAME==value`` assignments.

        Reassigned symbols become ca65 ``.SET`` symbols; octal values are
        converted to 4-digit hex. Every assignment is recorded in the
        context's symbol table. A label on the assignment line is dropped.
        """
        result: list[str] = []
        for line_number, line in enumerate(lines, start=1):
            parsed = classify_line(line)
            match = SYMBOL_DEFINITION.match(parsed.instruction)
            if not match:
                result.append(line)
                continue

            name, value = match.groups()
            if value.startswith("^O"):
                location = SourceLocation(self.filename, line_number)
                value = f"${parse_octal(value[2:], location):04X}"
            self.context.symbols.define(name, value)

            # assignments start in column 1; label and indentation are dropped
            operator = " .SET " if name in VARIABLE_SYMBOLS else "="
            result.append(f"{name}{operator}{value}{parsed.comment}")

        return result

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def convert(self, lines: list[str]) -> list[str]:
        """
        Run the complete translation pipeline.

        Raises:
            PreprocessorError: On any construct the translator cannot handle
        """
        logger.info(f"Translating {self.filename}: {len(lines)} lines")

        result = self.clean(lines)
        result = apply_patches(result)
        result = resolve_until_unchanged(
            result, self.convert_if, self.max_passes, name="IF conversion"
        )
        logger.debug(f"Converted {self.conditionals} conditional(s)")

        result = self.macros.expand(result)
        result = self.convert_symbols(result)
        logger.debug(f"Recorded {len(self.context.symbols)} symbol(s)")

        result = self.repeats.expand(result)
        result = self.rewriter.rewrite(result)
        result = expand_tabs(result)

        logger.info(
            f"Translated {self.filename}: {len(result)} lines, "
            f"{self.macros.expanded} macro(s), {self.conditionals} conditional(s)"
        )
        return result

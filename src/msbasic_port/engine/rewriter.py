"""
Instruction Rewriter
====================

Per-line rewriting of MACRO-10 instructions and data into ca65 syntax.

Each line is classified into label / instruction / comment, octal
``^O`` literals in the instruction are converted to hexadecimal, and the
instruction is matched against an ordered table of rewrite rules. The
first rule that accepts the line wins; a line no rule accepts is emitted
unchanged.

Rule Table
----------
| Rule        | MACRO-10            | ca65                 |
|-------------|---------------------|----------------------|
| radix       | ``RADIX 10``        | (removed, radix set) |
| org         | ``ORG ROMLOC``      | (removed)            |
| adr         | ``ADR(FOO-1)``      | ``.WORD FOO-1``      |
| block       | ``BLOCK 3``         | ``.RES 3``           |
| numeral     | ``177``             | ``.BYTE 127``        |
| hex         | ``$7F``             | ``.BYTE 127``        |
| exp         | ``EXP X``           | ``.BYTE X``          |
| expression  | ``333-ADDPRC``      | ``.BYTE 219-ADDPRC`` |
| symbol      | ``ADDPRC``          | ``.BYTE ADDPRC``     |
| immediate   | ``LDAI 15``         | ``LDA\\t#$0D``        |
| indirect-y  | ``LDADY INDEX``     | ``LDA\\t(INDEX),Y``   |
| indirect    | ``JMPD JMPER+1``    | ``JMP\\t(JMPER+1)``   |

Bare numerals are read in the active radix: octal (MACRO-10's default)
until a ``RADIX`` statement changes it.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from msbasic_port.engine.context import PreprocessContext
from msbasic_port.engine.lines import SourceLine, classify_line
from msbasic_port.errors import ExpressionError, SourceLocation

logger = logging.getLogger(__name__)


OCTAL_LITERAL = re.compile(r"\^O(\d+)")

IMMEDIATE_MNEMONICS = frozenset({
    "ADCI", "ANDI", "CMPI", "CPXI", "CPYI", "EORI", "LDAI", "LDXI", "LDYI", "ORAI", "SBCI",
})
INDIRECT_Y_MNEMONICS = frozenset({"ADCDY", "CMPDY", "LDADY", "SBCDY", "STADY"})

# Decimal equivalents of octal/decimal-mixed immediate arguments
IMMEDIATE_EXPRESSIONS = {
    "10*ADDPRC+30": "8*ADDPRC+24",
    "8*ADDPRC+230": "8*ADDPRC+152",
    "11+ADDPRC": "9+ADDPRC",
    "3*ADDPRC+10": "3*ADDPRC+8",
    '"0"+12': '"0"+10',
    "^D256-7": "256-7",
    "^D256-3-ADDPRC": "256-3-ADDPRC",
    "^D256-3*ADDPRC-6": "256-3*ADDPRC-6",
    '^D256-"0"': '256-"0"',
    "RAMLOC/^D256": "RAMLOC/256",
}

# Octal data expressions emitted as .BYTE while RADIX 8 is active
OCTAL_BYTE_EXPRESSIONS = {
    "333-ADDPRC": "219-ADDPRC",
}


def parse_number(digits: str, radix: int, location: Optional[SourceLocation] = None) -> int:
    """
    Parse a numeral in the given radix.

    Raises:
        ExpressionError: If a digit is invalid for the radix
    """
    try:
        return int(digits, radix)
    except ValueError:
        raise ExpressionError(
            f"invalid digits in base-{radix} number '{digits}'",
            location=location,
        ) from None


def parse_octal(digits: str, location: Optional[SourceLocation] = None) -> int:
    return parse_number(digits, 8, location)


def format_hex(value: int) -> str:
    """Hex literal: 2 digits when the value fits a byte, else 4."""
    width = 2 if value <= 0xFF else 4
    return f"${value:0{width}X}"


# =============================================================================
# Rewrite Rules
# =============================================================================

# A handler returns None to decline, [] to drop the line, or the new line(s)
Handler = Callable[["InstructionRewriter", re.Match, SourceLine], Optional[list[str]]]


@dataclass(frozen=True)
class RewriteRule:
    """
    One entry of the rewrite table.

    Attributes:
        name: Rule name used in logs and tests
        pattern: Matched against the instruction body
        handler: Produces the replacement
    """
    name: str
    pattern: re.Pattern
    handler: Handler


def _set_radix(rewriter, match, line):
    rewriter.context.radix = int(match.group(1))
    logger.debug(f"Radix set to {rewriter.context.radix}")
    return []


def _drop(rewriter, match, line):
    return []


def _word(rewriter, match, line):
    return [line.with_instruction(f".WORD {match.group(1)}")]


def _reserve(rewriter, match, line):
    if "BLOCK TRANSFER" in line.text:
        return None
    return [line.with_instruction(f".RES {match.group(1)}")]


def _numeral_byte(rewriter, match, line):
    value = parse_number(match.group(1), rewriter.context.radix, rewriter.location())
    return [line.with_instruction(f".BYTE {value}")]


def _hex_byte(rewriter, match, line):
    return [line.with_instruction(f".BYTE {int(match.group(1), 16)}")]


def _exp_byte(rewriter, match, line):
    return [line.with_instruction(f".BYTE {match.group(1)}")]


def _expression_byte(rewriter, match, line):
    if rewriter.context.radix != 8:
        return None
    return [line.with_instruction(f".BYTE {OCTAL_BYTE_EXPRESSIONS[match.group(0)]}")]


def _symbol_byte(rewriter, match, line):
    if not rewriter.context.symbols.is_defined(match.group(0)):
        return None
    return [line.with_instruction(f".BYTE {match.group(0)}")]


def _immediate(rewriter, match, line):
    mnemonic, argument = match.group(1), match.group(2)
    if rewriter.context.radix == 8 and argument.isdigit():
        argument = f"${parse_octal(argument, rewriter.location()):02X}"
    argument = IMMEDIATE_EXPRESSIONS.get(argument, argument)
    argument = argument.replace('"', "'")
    return [line.with_instruction(f"{mnemonic[:-1]}\t#{argument}")]


def _indirect_y(rewriter, match, line):
    return [line.with_instruction(f"{match.group(1)[:3]}\t({match.group(2)}),Y")]


def _indirect_jump(rewriter, match, line):
    return [line.with_instruction(f"JMP\t({match.group(1)})")]


def _alternatives(words) -> str:
    return "|".join(sorted(words))


RULES: tuple[RewriteRule, ...] = (
    RewriteRule("radix", re.compile(r"^RADIX\s(\d+)"), _set_radix),
    RewriteRule("org", re.compile(r"^\s*ORG\s(\S+)"), _drop),
    RewriteRule("adr", re.compile(r"^ADR\t*\((\S+)\)$"), _word),
    RewriteRule("block", re.compile(r"^BLOCK\s+(.*)$"), _reserve),
    RewriteRule("numeral", re.compile(r"^(\d+)$"), _numeral_byte),
    RewriteRule("hex", re.compile(r"^\$([0-9A-F]+)$"), _hex_byte),
    RewriteRule("exp", re.compile(r"^EXP\s+(.*)$"), _exp_byte),
    RewriteRule(
        "expression",
        re.compile(f"^(?:{_alternatives(re.escape(e) for e in OCTAL_BYTE_EXPRESSIONS)})$"),
        _expression_byte,
    ),
    RewriteRule("symbol", re.compile(r"^[A-Z]+$"), _symbol_byte),
    RewriteRule(
        "immediate",
        re.compile(f"^({_alternatives(IMMEDIATE_MNEMONICS)})\\s+(.*)$"),
        _immediate,
    ),
    RewriteRule(
        "indirect-y",
        re.compile(f"^({_alternatives(INDIRECT_Y_MNEMONICS)})\\s+(.*)$"),
        _indirect_y,
    ),
    RewriteRule("indirect", re.compile(r"^JMPD\s+(.*)$"), _indirect_jump),
)


# =============================================================================
# Instruction Rewriter
# =============================================================================

class InstructionRewriter:
    """
    Rewrites instruction lines using an ordered rule table.

    Attributes:
        context: Run context (radix and known symbols)
        rules: Ordered rewrite rules, first match wins
    """

    def __init__(self, context: PreprocessContext, rules: tuple[RewriteRule, ...] = RULES):
        self.context = context
        self.rules = rules
        self._line_number = 0

    def location(self) -> SourceLocation:
        return SourceLocation(self.context.filename, self._line_number)

    def convert_octal(self, line: SourceLine) -> SourceLine:
        """Replace ^O literals in the instruction with hex literals."""
        if "^O" not in line.instruction:
            return line

        def replace(match: re.Match) -> str:
            return format_hex(parse_octal(match.group(1), self.location()))

        instruction = OCTAL_LITERAL.sub(replace, line.instruction)
        return classify_line(line.with_instruction(instruction))

    def apply_rule(self, rule: RewriteRule, line: SourceLine) -> Optional[list[str]]:
        """Apply a single rule; None if it does not accept the line."""
        match = rule.pattern.match(line.instruction)
        if not match:
            return None
        return rule.handler(self, match, line)

    def rewrite_line(self, text: str) -> list[str]:
        line = self.convert_octal(classify_line(text))
        for rule in self.rules:
            replacement = self.apply_rule(rule, line)
            if replacement is not None:
                return replacement
        return [line.text]

    def rewrite(self, lines: list[str]) -> list[str]:
        result: list[str] = []
        for line_number, text in enumerate(lines, start=1):
            self._line_number = line_number
            result.extend(self.rewrite_line(text))
        return result

"""
Macro Expander
==============

MACRO-10 macros are defined with ``DEFINE NAME (PARAMS),<BODY>``. Their
bodies use MACRO-10 features that cannot be retargeted mechanically, so
each definition is replaced by a hand-written ca65 ``.MACRO`` taken from
a closed dictionary keyed by the exact signature text::

    DEFINE  LDWD (WD),<                 .MACRO LDWD ADDRESS
            LDA     WD                     LDA ADDRESS+0
            LDY     WD+1>          ->      LDY ADDRESS+1
                                        .ENDMACRO

The dictionary is complete for the legacy source. A signature it does
not contain is a new construct and stops the run with ``MacroError``.
"""

import logging
import re
import textwrap
from typing import Mapping, Optional

from msbasic_port.engine.blocks import extract_block
from msbasic_port.engine.lines import LineCursor
from msbasic_port.errors import MacroError

logger = logging.getLogger(__name__)


DEFINE_PATTERN = re.compile(r"^DEFINE(.*),\s*<(.*)$")


def _macro(text: str) -> tuple[str, ...]:
    return tuple(textwrap.dedent(text).strip("\n").splitlines())


_STRING_BODY = (
    "  .REPEAT .STRLEN(STR)-1,I",
    "    .BYTE .STRAT(STR,I)",
    "  .ENDREP",
    "  .BYTE .STRAT(STR,.STRLEN(STR)-1) | $80",
)


def _branch_alias(name: str, mnemonic: str) -> tuple[str, ...]:
    return (f".MACRO {name} ADDRESS", f"  {mnemonic} ADDRESS", ".ENDMACRO")


# =============================================================================
# Macro Dictionary
# =============================================================================
# Signature (as written after DEFINE, tabs replaced by spaces) -> ca65 lines
# =============================================================================

MACRO_TABLE: dict[str, tuple[str, ...]] = {
    "DC": (".MACRO DC STR",) + _STRING_BODY + (".ENDMACRO",),
    "DCI(A)": (".MACRO DCI STR",) + _STRING_BODY + ("  Q .SET Q+1", ".ENDMACRO"),
    "DCE(X)": (".MACRO DCE STR",) + _STRING_BODY + ("  Q .SET Q+2", ".ENDMACRO"),
    "ROR (WD)": _macro("""
        .MACRO RORA ADDRESS
          LDA #0
          BCC *+4
          LDA #$80
          LSR ADDRESS
          ORA ADDRESS
          STA ADDRESS
        .ENDMACRO
    """),
    "ACRLF": _macro("""
        .MACRO ACRLF
          .BYTE $0D, $0A
        .ENDMACRO
    """),
    "SYNCHK (Q)": _macro("""
        .MACRO SYNCHK VALUE
          LDA #VALUE
          JSR SYNCHR
        .ENDMACRO
    """),
    "DT(Q)": _macro("""
        .MACRO DT STR
          .BYTE STR
        .ENDMACRO
    """),
    "LDWD (WD)": _macro("""
        .MACRO LDWD ADDRESS
          LDA ADDRESS+0
          LDY ADDRESS+1
        .ENDMACRO
    """),
    "LDWDI (WD)": _macro("""
        .MACRO LDWDI ADDRESS
          LDA #<(ADDRESS)
          LDY #>(ADDRESS)
        .ENDMACRO
    """),
    "LDWX (WD)": _macro("""
        .MACRO LDWX ADDRESS
          LDA ADDRESS+0
          LDX ADDRESS+1
        .ENDMACRO
    """),
    "LDWXI (WD)": _macro("""
        .MACRO LDWXI ADDRESS
          LDA #<(ADDRESS)
          LDX #>(ADDRESS)
        .ENDMACRO
    """),
    "LDXY (WD)": _macro("""
        .MACRO LDXY ADDRESS
          LDX ADDRESS+0
          LDY ADDRESS+1
        .ENDMACRO
    """),
    "LDXYI (WD)": _macro("""
        .MACRO LDXYI ADDRESS
          LDX #<(ADDRESS)
          LDY #>(ADDRESS)
        .ENDMACRO
    """),
    "STWD (WD)": _macro("""
        .MACRO STWD ADDRESS
          STA ADDRESS+0
          STY ADDRESS+1
        .ENDMACRO
    """),
    "STWX (WD)": _macro("""
        .MACRO STWX ADDRESS
          STA ADDRESS+0
          STX ADDRESS+1
        .ENDMACRO
    """),
    "STXY (WD)": _macro("""
        .MACRO STXY ADDRESS
          STX ADDRESS+0
          STY ADDRESS+1
        .ENDMACRO
    """),
    "CLR (WD)": _macro("""
        .MACRO CLR ADDRESS
          LDA #0
          STA ADDRESS
        .ENDMACRO
    """),
    "COM (WD)": _macro("""
        .MACRO COM ADDRESS
          LDA ADDRESS
          EOR #$FF
          STA ADDRESS
        .ENDMACRO
    """),
    "PULWD (WD)": _macro("""
        .MACRO PULWD ADDRESS
          PLA
          STA ADDRESS+0
          PLA
          STA ADDRESS+1
        .ENDMACRO
    """),
    "PSHWD (WD)": _macro("""
        .MACRO PSHWD ADDRESS
          LDA ADDRESS+1
          PHA
          LDA ADDRESS+0
          PHA
        .ENDMACRO
    """),
    "JEQ (WD)": _macro("""
        .MACRO JEQ ADDRESS
          BNE *+5
          JMP ADDRESS
        .ENDMACRO
    """),
    "JNE (WD)": _macro("""
        .MACRO JNE ADDRESS
          BEQ *+5
          JMP ADDRESS
        .ENDMACRO
    """),
    "BCCA(Q)": _branch_alias("BCCA", "BCC"),
    "BCSA(Q)": _branch_alias("BCSA", "BCS"),
    "BEQA(Q)": _branch_alias("BEQA", "BEQ"),
    "BNEA(Q)": _branch_alias("BNEA", "BNE"),
    "BMIA(Q)": _branch_alias("BMIA", "BMI"),
    "BPLA(Q)": _branch_alias("BPLA", "BPL"),
    "BVCA(Q)": _branch_alias("BVCA", "BVC"),
    "BVSA(Q)": _branch_alias("BVSA", "BVS"),
    "INCW(R)": _macro("""
        .MACRO INCW ADDRESS
          .LOCAL @SKIP
          INC ADDRESS+0
          BNE @SKIP
          INC ADDRESS+1
          @SKIP:
        .ENDMACRO
    """),
    "SKIP1": _macro("""
        .MACRO SKIP1 ADDRESS
          .BYTE $24 ; BIT ZERO PAGE
        .ENDMACRO
    """),
    "SKIP2": _macro("""
        .MACRO SKIP2 ADDRESS
          .BYTE $2C ; BIT ABS
        .ENDMACRO
    """),
}


def normalize_signature(text: str) -> str:
    """Signature text as used for dictionary lookup."""
    return text.strip().replace("\t", " ")


class MacroExpander:
    """
    Replaces DEFINE blocks with ca65 macro definitions.

    Attributes:
        table: Signature -> ca65 definition lines
        filename: Source name used in error locations
    """

    def __init__(
        self,
        table: Optional[Mapping[str, tuple[str, ...]]] = None,
        filename: str = "<input>",
    ):
        self.table = MACRO_TABLE if table is None else table
        self.filename = filename
        self.expanded = 0

    def definition(self, signature: str) -> list[str]:
        """ca65 lines for a signature, followed by one blank line."""
        return list(self.table[signature]) + [""]

    def expand(self, lines: list[str]) -> list[str]:
        """
        Replace every DEFINE block in the stream.

        Raises:
            MacroError: If a signature is missing from the table
            UnterminatedBlockError: If a macro body is never closed
        """
        cursor = LineCursor(lines, self.filename)
        result: list[str] = []
        while cursor:
            line = cursor.pop()
            match = DEFINE_PATTERN.match(line)
            if not match:
                result.append(line)
                continue

            location = cursor.location()
            signature = normalize_signature(match.group(1))
            # the MACRO-10 body is consumed and discarded
            extract_block(match.group(2), cursor, location=location)
            if signature not in self.table:
                raise MacroError(signature, location=location, source_line=line)
            result.extend(self.definition(signature))
            self.expanded += 1
            logger.debug(f"Expanded macro '{signature}' at line {location.line}")

        return result

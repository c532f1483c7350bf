"""
Commodore Pipeline
==================

Flattens translated ca65 source into the Commodore (``REALIO=3``)
variant using a fixed profile instead of symbol tracking: the conditions
known to hold, the conditions known to fail, the configuration lines to
remove and the lines to rewrite.

Conditions outside the profile stay as directives. After flattening,
every ``.SET`` line other than the ``Q`` counter is reported: such a line
marks configuration the profile does not cover yet.

Example:
    >>> formatter = CommodoreFormatter(ext_io=False)
    >>> flat = formatter.format(lines)
    >>> formatter.leftover_sets
    []
"""

import logging
from dataclasses import dataclass, field

from msbasic_port.engine.conditions import REALIO_VALIDATION_GUARD, TableEvaluator
from msbasic_port.engine.resolver import DEFAULT_MAX_PASSES, ConditionalResolver

logger = logging.getLogger(__name__)


COMMENT_COLUMN = 32
COUNTER_SET = "Q .SET"


@dataclass
class CommodoreProfile:
    """
    Closed description of the Commodore configuration.

    Attributes:
        true_conditions: Conditions whose body is kept
        false_conditions: Conditions whose body is dropped
        remove_substrings: Lines containing any of these are removed
        replace_lines: Exact line -> replacement line
    """
    true_conditions: set[str] = field(default_factory=set)
    false_conditions: set[str] = field(default_factory=set)
    remove_substrings: list[str] = field(default_factory=list)
    replace_lines: dict[str, str] = field(default_factory=dict)

    def holds(self, *conditions: str) -> None:
        self.true_conditions.update(conditions)

    def fails(self, *conditions: str) -> None:
        self.false_conditions.update(conditions)

    def remove(self, *substrings: str) -> None:
        self.remove_substrings.extend(substrings)

    def replace(self, line: str, replacement: str) -> None:
        self.replace_lines[line] = replacement


def commodore_profile(ext_io: bool = True) -> CommodoreProfile:
    """
    Build the Commodore profile.

    Args:
        ext_io: Include external I/O (CMD, OPEN, CLOSE and friends)
    """
    profile = CommodoreProfile()

    # REALIO=3 target
    profile.holds("REALIO<>1", "REALIO=3", "REALIO<>0", "REALIO<>2", "REALIO<>4", "(REALIO|LONGI)<>0")
    profile.fails(
        REALIO_VALIDATION_GUARD,
        "REALIO=0", "REALIO<>3", "REALIO=1", "REALIO=2", "REALIO=4", "REALIO=5",
        "(REALIO|LONGI)=0", "(REALIO|DISKO)=0",
    )
    profile.remove(
        ";5=STM", ";4=APPLE.", ";3=COMMODORE.", ";2=OSI", ";1=MOS TECH,KIM",
        ";0=PDP-10 SIMULATING 6502", ".OUT",
    )

    # ROMSW=1 BASIC in ROM
    profile.holds("ROMSW<>0")
    profile.fails("ROMSW=0")
    profile.remove("ROMSW .SET 1")

    # KIMROM=0 no KIM-1 ROM
    profile.holds("KIMROM=0")
    profile.fails("KIMROM<>0")
    profile.remove("KIMROM .SET")

    # RORSW=1 use the ROR instruction
    profile.holds("RORSW<>0")
    profile.fails("RORSW=0")
    profile.remove("RORSW .SET 1")

    # ADDPRC=1 additional floating point precision
    profile.holds("ADDPRC<>0")
    profile.fails("ADDPRC=0")
    profile.replace(
        "ADDPRC=1".ljust(COMMENT_COLUMN) + ";FOR ADDITIONAL PRECISION.",
        "ADDPRC=1".ljust(24) + ";FOR ADDITIONAL PRECISION.",
    )

    # INTPRC=1 integer arrays
    profile.holds("INTPRC<>0")
    profile.fails("INTPRC=0")
    profile.remove(";INTEGER ARRAYS.")

    # LNGERR=1 long error messages
    profile.holds("LNGERR<>0")
    profile.fails("LNGERR=0")
    profile.remove("LNGERR=1")

    # BUFPAG=2 input buffer page
    profile.holds("BUFPAG<>0", "1 ; ((BUF+BUFLEN)/256)-((BUF-1)/256)")
    profile.fails("BUFPAG=0")
    profile.remove("BUFPAG .SET 0")
    profile.replace("BUFPAG .SET 2", "BUFPAG=2")

    # NULCMD=0 no NULL command
    profile.holds("NULCMD=0")
    profile.fails("NULCMD<>0")
    profile.remove("NULCMD .SET")

    # GETCMD=1 GET command
    profile.holds("GETCMD<>0")
    profile.remove("GETCMD .SET 1")

    # TIME=1 clock
    profile.holds("TIME<>0", "(TIME|EXTIO)<>0", "(EXTIO|TIME)<>0")
    profile.remove("TIME .SET")

    # STKEND=507 end of stack
    profile.holds("STKEND<>511")
    profile.remove("STKEND .SET 511")
    profile.replace("STKEND .SET 507", "STKEND=507")

    # EXTIO external I/O
    if ext_io:
        profile.holds("EXTIO<>0")
        profile.fails("EXTIO=0")
    else:
        profile.holds("EXTIO=0")
        profile.fails("EXTIO<>0")
    profile.remove("EXTIO .SET")

    # DISKO=1 SAVE and LOAD
    profile.holds("DISKO<>0")
    profile.remove("DISKO .SET")

    # LINLEN=40 terminal line length
    profile.remove("LINLEN .SET 72")
    profile.replace("LINLEN .SET 40", "LINLEN=40")

    # BUFLEN=81 input buffer size
    profile.remove("BUFLEN .SET 72")
    profile.replace("BUFLEN .SET 81", "BUFLEN=81")

    # ROMLOC=$C000 start of ROM
    profile.remove("ROMLOC .SET $2000")
    profile.replace("ROMLOC .SET $C000", "ROMLOC=$C000")

    # RAMLOC=$0400 start of RAM
    profile.remove("RAMLOC .SET $4000")
    profile.replace("RAMLOC .SET $0400", "RAMLOC=$0400")

    # CLMWID=10 PRINT column width
    profile.remove("CLMWID .SET 14")
    profile.replace("CLMWID .SET 10", "CLMWID=10")

    # BUFOFS=(BUF/256)*256 with BUF=256*BUFPAG
    profile.remove("BUFOFS .SET (BUF/256)*256")
    profile.replace(
        "BUFOFS .SET 0".ljust(COMMENT_COLUMN) + ";THE AMOUNT TO OFFSET THE LOW BYTE",
        "BUFOFS=(BUF/256)*256".ljust(COMMENT_COLUMN) + ";THE AMOUNT TO OFFSET THE LOW BYTE",
    )

    return profile


class CommodoreFormatter:
    """
    Table-driven flattening for the Commodore target.

    Attributes:
        ext_io: Whether external I/O is included
        profile: Conditions and line edits for this configuration
        leftover_sets: ``.SET`` lines still present after the last run
    """

    def __init__(self, ext_io: bool = True, filename: str = "<input>", max_passes: int = DEFAULT_MAX_PASSES):
        self.ext_io = ext_io
        self.filename = filename
        self.profile = commodore_profile(ext_io)
        self.resolver = ConditionalResolver(
            TableEvaluator(self.profile.true_conditions, self.profile.false_conditions),
            max_passes=max_passes,
            filename=filename,
        )
        self.leftover_sets: list[str] = []

    def process_lines(self, lines: list[str]) -> list[str]:
        """Apply the profile's removals, then its exact-match replacements."""
        result: list[str] = []
        for line in lines:
            if any(search in line for search in self.profile.remove_substrings):
                continue
            result.append(self.profile.replace_lines.get(line, line))
        return result

    def report_sets(self, lines: list[str]) -> list[str]:
        """Collect and log ``.SET`` lines the profile left behind."""
        self.leftover_sets = [
            line for line in lines if ".SET" in line and COUNTER_SET not in line
        ]
        for line in self.leftover_sets:
            logger.warning(f"Unresolved .SET: {line.strip()}")
        return self.leftover_sets

    def format(self, lines: list[str]) -> list[str]:
        """
        Run the Commodore pipeline.

        Raises:
            UnterminatedBlockError: If a directive is never closed
        """
        logger.info(f"Formatting {self.filename} for Commodore (EXTIO={int(self.ext_io)})")

        result = self.resolver.resolve(lines)
        logger.debug(f"Resolution: {self.resolver.stats}")
        result = self.process_lines(result)
        self.report_sets(result)

        logger.info(
            f"Formatted {self.filename}: {len(lines)} -> {len(result)} lines, "
            f"{len(self.leftover_sets)} unresolved .SET line(s)"
        )
        return result

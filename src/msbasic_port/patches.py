"""
Text-Block Patch Catalogue
==========================

One-off corrections to the legacy source, applied before any structural
conversion. Each patch replaces every occurrence of an exact run of lines
with another run of lines; an empty replacement deletes the run.

The catalogue is data, not logic. It fixes typos, MACRO-10 workarounds
and constructs that have no ca65 equivalent, and inserts the extra
conditionals needed for the Commodore variant.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextPatch:
    """
    A multi-line search-and-replace.

    Attributes:
        search: Lines to find (exact match, consecutive)
        replace: Replacement lines (empty to delete)
        reason: What the patch fixes
    """
    search: tuple[str, ...]
    replace: tuple[str, ...]
    reason: str = ""


def _patch(search: str, replace: str, reason: str = "") -> TextPatch:
    return TextPatch(tuple(search.splitlines()), tuple(replace.splitlines()), reason)


def replace_text_block(lines: list[str], search: tuple[str, ...], replace: tuple[str, ...]) -> list[str]:
    """Replace each non-overlapping occurrence of ``search`` in ``lines``."""
    if not search:
        return list(lines)
    result: list[str] = []
    size = len(search)
    index = 0
    while index < len(lines):
        if tuple(lines[index:index + size]) == search:
            result.extend(replace)
            index += size
            continue
        result.append(lines[index])
        index += 1
    return result


# =============================================================================
# Patch Catalogue
# =============================================================================

PATCHES: tuple[TextPatch, ...] = (
    _patch(
        "\t\t\t\t;0=PDP-10 SIMULATING 6502\n",
        "\t\t\t\t;0=PDP-10 SIMULATING 6502\n"
        "\n"
        ".IF REALIO <> 1 .AND REALIO <> 2 .AND REALIO <> 3 .AND REALIO <> 4\n"
        "  .ERROR .SPRINTF(\"REALIO must be 1, 2, 3, or 4 (actual=%d)\", REALIO)\n"
        ".ENDIF\n"
        "\n",
        "add REALIO validation",
    ),
    _patch(
        "; SUBTTL\tPAGE ZERO.\n",
        "; SUBTTL\tPAGE ZERO.\n"
        ".SEGMENT \"ZEROPAGE\"\n",
        "add ZEROPAGE segment",
    ),
    _patch("\tORG\tROMLOC", ".SEGMENT \"CODE\": absolute", "add CODE segment"),
    _patch("REALIO=4\t\t\t;5=STM", "\t\t\t\t;5=STM", "remove default target"),
    _patch(
        "DEFINE ACRLF,<\n",
        "DEFINE DC,<>\n"
        "DEFINE ACRLF,<\n",
        "add DC macro",
    ),
    _patch(
        "IFE\tREALIO-2,<\n"
        "\tRORSW==0\n",
        "IFE\tREALIO-2,<\n"
        "\tGETCMD==0\n"
        "\tRORSW==0\n",
        "disable GET command for OSI",
    ),
    _patch(
        "LASTWR::\n"
        "\tBLOCK\t100\t\t;SPACE FOR TEMP STACK.\n",
        "IFE ROMSW,<\n"
        "LASTWR:\n"
        "\tBLOCK\t100\t\t;SPACE FOR TEMP STACK.>\n",
        "temporary stack only when not in ROM",
    ),
    _patch(
        "BUFOFS=0\t\t\t;THE AMOUNT TO OFFSET THE LOW BYTE\n"
        "\t\t\t\t;OF THE TEXT POINTER TO GET TO BUF\n"
        "\t\t\t\t;AFTER TXTPTR HAS BEEN SETUP TO POINT INTO BUF\n",
        "\t\t\t\t;BUFOFS IS THE AMOUNT TO OFFSET THE LOW BYTE\n"
        "\t\t\t\t;OF THE TEXT POINTER TO GET TO BUF**\n"
        "\t\t\t\t;AFTER TXTPTR HAS BEEN SETUP TO POINT INTO BUF\n"
        "BUFOFS=0\n",
        "move comment so the assignment can be removed",
    ),
    _patch(
        "LOFBUF: BLOCK\t1\t\t;THE LOW FAC BUFFER. COPYABLE.\n"
        ";---  PAGE ZERO/ONE BOUNDARY ---.\n"
        "\t\t\t\t;MUST HAVE 13 CONTIGUOUS BYTES.\n"
        "FBUFFR: BLOCK\t3*ADDPRC+13\t;BUFFER FOR \"FOUT\".\n"
        "\t\t\t\t;ON PAGE 1 SO THAT STRING IS NOT COPIED.\n",
        "IFN REALIO-3,<\n"
        "LOFBUF: BLOCK\t1\t\t;THE LOW FAC BUFFER. COPYABLE.\n"
        ";---  PAGE ZERO/ONE BOUNDARY ---.\n"
        "\t\t\t\t;MUST HAVE 13 CONTIGUOUS BYTES.\n"
        "FBUFFR: BLOCK\t3*ADDPRC+13\t;BUFFER FOR \"FOUT\".\n"
        "\t\t\t\t;ON PAGE 1 SO THAT STRING IS NOT COPIED.>\n"
        "IFE REALIO-3,<\n"
        "LOFBUF=$00ff\n"
        "FBUFFR=$0100>\n",
        "fix LOFBUF and FBUFFR for Commodore",
    ),
    _patch(
        "IFE\tREALIO-3,<\n"
        "\tLDA\tCHANNL\n"
        "\tBEQ\tCRTSKP\n",
        "IFN\tEXTIO,<\n"
        "\tLDA\tCHANNL\n"
        "\tBEQ\tCRTSKP\n",
        "access CHANNL only with external I/O",
    ),
    _patch(
        "\tJMP\tFLOAT\n"
        "GOMOVF:>\n",
        "\tJMP\tFLOAT>\n"
        "GOMOVF:\n",
        "GOMOVF label missing without external I/O",
    ),
    _patch(
        "IFE\tREALIO-3,<\n"
        "\tDISKO==1\n",
        "CBMRND .SET 0\t\t;FLAG TO ENABLE COMMODORE VIA TIMER FOR RND FUNCTION\n"
        "IFE\tREALIO-3,<\n"
        "CBMRND .SET 1\t\t;USE COMMODORE VIA TIMER FOR RND FUNCTION\n"
        "\tDISKO==1\n",
        "symbol for the Commodore RND function",
    ),
    _patch(
        "IFN\tREALIO-3,<\n"
        "\tTAX>\t\t\t;GET INTO ACCX, SINCE \"MOVFM\" USES ACCX.\n",
        "IFE\tCBMRND,<\n"
        "\tTAX>\t\t\t;GET INTO ACCX, SINCE \"MOVFM\" USES ACCX.\n",
        "RND: select on CBMRND",
    ),
    _patch(
        "IFE\tREALIO-3,<\n"
        "\tBNE\tQSETNR\n",
        "IFN\tCBMRND,<\n"
        "\tBNE\tQSETNR\n",
        "RND: select on CBMRND",
    ),
    _patch(
        "IFN\tREALIO-3,<\n"
        "\tTXA\t\t\t;FAC WAS ZERO?\n",
        "IFE\tCBMRND,<\n"
        "\tTXA\t\t\t;FAC WAS ZERO?\n",
        "RND: select on CBMRND",
    ),
    _patch(
        "IFE\tREALIO-3,<\n"
        "\tLDX\tFACMOH\n",
        "IFN\tCBMRND,<\n"
        "\tLDX\tFACMOH\n",
        "RND: select on CBMRND",
    ),
    _patch(
        "\tBEQ\tDIRCON\n",
        "IFE REALIO-3,<\tNOP>\n"
        "\tBEQ\tDIRCON\n",
        "missing NOP for Commodore",
    ),
    _patch(
        "\tCMPI\tROMLOC/256\t;IF WITHIN BASIC,\n"
        "\tBCC\tGETCON\n"
        "\tCMPI\tLASTWR/256\n"
        "\tBCC\tDOSGFL>\t\t;GIVE HIM ZERO FOR AN ANSWER.\n",
        "\tNOP\n" * 7 + "\tNOP>\n",
        "allow PEEK into ROM for Commodore",
    ),
    _patch(
        "IFN\tREALIO-3,<ZSTORDO=STORDO>\n",
        "IFN\tREALIO-3,<ZSTORDO=STORDO>\n"
        "IFE\tREALIO-3,<ZSTORDO=ZSTORD>\n",
        "activate easter egg for Commodore",
    ),
    _patch("MRCHR:\tLDA\tSINCON+36,X>", "MRCHR:\tLDA\tSINCON+30,X>", "easter egg offset"),
    _patch(
        "DIVNRM: REPEAT\t6,<ASL\tA>\t;GET LAST TWO BITS INTO MSB AND B6.\n",
        "DIVNRM:\n"
        "REPEAT\t6,<ASL\tA>\t;GET LAST TWO BITS INTO MSB AND B6.\n",
        "move label off the REPEAT line",
    ),
    _patch(
        "\t\"S\"\n"
        "\t\"P\"\n"
        "\t\"C\"\n"
        "\t\"(\"+128\t\t\t;MACRO DOESNT LIKE ('S IN ARGUMENTS.\n"
        "\tQ=Q+1\n",
        "\tDCI\"SPC(\"\n",
        "undo MACRO-10 workaround for '(' in arguments",
    ),
    _patch(
        "\t\"T\"\n"
        "\t\"A\"\n"
        "\t\"B\"\n"
        "\t\"(\"+128\n"
        "\tQ=Q+1\n",
        "\tDCI\"TAB(\"\n",
        "undo MACRO-10 workaround for '(' in arguments",
    ),
    _patch(
        "; SUBTTL\tINTRODUCTION AND COMPILATION PARAMETERS.\n",
        "; SUBTTL\tINTRODUCTION AND COMPILATION PARAMETERS.\n"
        "\n"
        ".FEATURE c_comments\n"
        "\n",
        "enable C comments for COMMENT blocks",
    ),
    _patch("LNGERR==0\t\t\t;LONG ERROR MESSAGES.", "LNGERR==1\t\t\t;LONG ERROR MESSAGES.", "long errors by default"),
    _patch("\tADR(RESTORE-1)", "\tADR(RESTOR-1)", "label name"),
    _patch("\tXWD\t^O1000,^O251\t;LDAI TYA TO MAKE IT NONZERO.", "\t.BYTE\t$A9", "inject opcode $A9"),
    _patch("ife\taddprc,<", "IFE\tADDPRC,<", "capitalization"),
    _patch("expcon: 6\t; degree -1.", "EXPCON: 6\t; degree -1.", "capitalization"),
    _patch("\tlinlen==40", "LINLEN==40", "capitalization"),
    _patch("\tERRDV0==Q\t\t;DIVISION BY ZERO.", "ERRDV0=Q\t;DIVISION BY ZERO.", "whitespace"),
    _patch("\tERRDV0==Q", "ERRDV0=Q", "whitespace"),
    _patch("ZSTORD:!\tLDA\tPOKER", "ZSTORD:\tLDA\tPOKER", "stray '!'"),
    # not supported by ca65
    _patch("SEARCH\tM6502", ""),
    _patch("SALL", ""),
    _patch("$Z::\t\t\t\t;STARTING POINT FOR M6502 SIMULATOR", ""),
    _patch("PAGE", ""),
    _patch("\tPAGE", ""),
    _patch("\tHRRZ\t14,.JBDDT##", ";\tHRRZ\t14,.JBDDT##"),
    _patch("\tJRST\t0(14)>", ";\tJRST\t0(14)>"),
    _patch("\tXLIST", ""),
    _patch("\tLIST", ""),
    _patch(".XCREF", ""),
    _patch(".CREF", ""),
    _patch("IFNDEF\tSTART,<START==0>", ""),
    _patch("\tEND\t$Z+START", ""),
)


def apply_patches(lines: list[str], patches: tuple[TextPatch, ...] = PATCHES) -> list[str]:
    """Apply every patch in catalogue order."""
    result = list(lines)
    for patch in patches:
        patched = replace_text_block(result, patch.search, patch.replace)
        if patched != result:
            logger.debug(f"Applied patch: {patch.reason or patch.search[0]!r}")
        result = patched
    return result

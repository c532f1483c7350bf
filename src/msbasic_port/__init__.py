"""
msbasic-port - MACRO-10 to ca65 Port of Microsoft BASIC for the 6502
=====================================================================

This package translates the original MACRO-10 source of Microsoft BASIC
for the 6502 (``m6502.asm``) into cc65/ca65 syntax and flattens the
result into single-platform variants.

Main Components
---------------
- **converter**: Translation pipeline (mbconv)
    MACRO-10 source to ca65 source with ``.IF``/``.ENDIF`` directives

- **formatter**: Resolution pipeline (mbresolve)
    Flattens the directives for a platform chosen by ``NAME=VALUE`` overrides

- **commodore**: Commodore pipeline (mbcbm)
    Flattens the directives for the Commodore target from a fixed profile

- **engine**: Shared preprocessing engine
    Line classification, block extraction, symbol tracking, three-valued
    condition evaluation and fixed-point conditional resolution

Quick Start
-----------
Translate the original source:
    >>> from msbasic_port import Converter, read_lines, write_lines
    >>> lines = Converter("m6502.asm").convert(read_lines("m6502.asm"))
    >>> write_lines("m6502.s", lines)

Flatten it for the KIM-1:
    >>> from msbasic_port import Formatter
    >>> kim = Formatter({"REALIO": "1"}).format(lines)

Or use the command-line tools:
    $ mbconv m6502.asm m6502.s
    $ mbresolve m6502.s kim.s REALIO=1
    $ mbcbm m6502.s cbm.s --no-ext-io

Version History
---------------
1.0.0 - Initial release with translator, resolver and Commodore formatter
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from msbasic_port.errors import (
    PortError,
    SourceLocation,
    PreprocessorError,
    UnterminatedBlockError,
    UnsupportedExpressionError,
    MacroError,
    ExpressionError,
    ConfigurationError,
)
from msbasic_port.engine.context import PreprocessContext
from msbasic_port.converter import Converter
from msbasic_port.formatter import Formatter
from msbasic_port.commodore import CommodoreFormatter
from msbasic_port.sourcefile import read_lines, write_lines

__all__ = [
    "__version__",
    # Errors
    "PortError",
    "SourceLocation",
    "PreprocessorError",
    "UnterminatedBlockError",
    "UnsupportedExpressionError",
    "MacroError",
    "ExpressionError",
    "ConfigurationError",
    # Pipelines
    "PreprocessContext",
    "Converter",
    "Formatter",
    "CommodoreFormatter",
    # Files
    "read_lines",
    "write_lines",
]

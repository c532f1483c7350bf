"""
msbasic-port Error Hierarchy
============================

This module defines the exception hierarchy for the whole toolchain.
All exceptions inherit from PortError, allowing callers to catch every
porting failure with a single except clause if desired.

Exception Hierarchy
-------------------
PortError (base)
├── PreprocessorError (source-related, carries a location)
│   ├── UnterminatedBlockError - input ended before a block closed
│   ├── UnsupportedExpressionError - condition or repeat count not translatable
│   ├── MacroError - DEFINE signature missing from the macro dictionary
│   └── ExpressionError - malformed numeric literal
└── ConfigurationError - invalid or missing override tokens

Every failure is fatal: the pipelines are single-shot batch transforms and
no output file is written once one of these has been raised.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class PortError(Exception):
    """
    Base exception for all msbasic-port errors.

        try:
            Converter().convert(lines)
        except PortError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in a source file for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for in-memory lines)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Preprocessor Exceptions
# =============================================================================

class PreprocessorError(PortError):
    """
    Base exception for errors found while transforming source lines.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            m6502.asm:812:1: error: unsupported expression 'REALIO-9'
                IFE REALIO-9,<
                ^
            hint: add a translation for this condition
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class UnterminatedBlockError(PreprocessorError):
    """
    Input was exhausted before a block's closing delimiter was found.

    Raised for both angle-bracket blocks (DEFINE, REPEAT, IFE/IFN bodies)
    and .IF/.ENDIF directive blocks.
    """

    def __init__(
        self,
        delimiter: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.delimiter = delimiter
        super().__init__(
            f"missing '{delimiter}'",
            location=location,
            hint="the block opened here is never closed",
            source_line=source_line,
        )


class UnsupportedExpressionError(PreprocessorError):
    """
    An expression could not be translated.

    Raised when a MACRO-10 IFE/IFN condition has no ca65 equivalent in the
    condition table, or when a REPEAT count is neither a literal nor a
    literal plus a known symbol.
    """

    def __init__(
        self,
        expression: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.expression = expression
        super().__init__(
            f"unsupported expression '{expression}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MacroError(PreprocessorError):
    """
    A DEFINE signature is missing from the macro dictionary.

    The dictionary is complete for the legacy source; a miss means a new
    construct that needs a hand-written ca65 definition.
    """

    def __init__(
        self,
        signature: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.signature = signature
        super().__init__(
            f"no ca65 definition for macro '{signature}'",
            location=location,
            hint="add the signature to MACRO_TABLE",
            source_line=source_line,
        )


class ExpressionError(PreprocessorError):
    """
    Malformed numeric literal.

    Raised when a numeral contains digits invalid for its radix,
    e.g. ^O19 or a bare 78 while RADIX 8 is active.
    """
    pass


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigurationError(PortError):
    """
    Invalid pipeline configuration.

    Raised when:
    - The platform selector override (REALIO=n) is missing
    - An override token is not of the form NAME=VALUE
    """
    pass

"""
Pipeline Context
================

All mutable preprocessing state of one pipeline run lives in a
``PreprocessContext``: the symbol table and the active numeric radix.
Each run constructs a fresh context and threads it through the stages
that need it; nothing is shared between runs.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from msbasic_port.engine.symbols import CONFIG_SYMBOLS, SymbolTable, ValuePolicy


# MACRO-10 assumes octal until a RADIX statement says otherwise
DEFAULT_RADIX = 8


@dataclass
class PreprocessContext:
    """
    State owned by a single pipeline run.

    Attributes:
        symbols: Symbol table for this run
        radix: Active numeric radix for bare numerals
        filename: Source name used in error locations
    """
    symbols: SymbolTable = field(default_factory=SymbolTable)
    radix: int = DEFAULT_RADIX
    filename: str = "<input>"

    @classmethod
    def for_translation(cls, filename: str = "<input>") -> "PreprocessContext":
        """Context for the translator: every assignment recorded, last wins."""
        return cls(SymbolTable(names=None, policy=ValuePolicy.LAST), filename=filename)

    @classmethod
    def for_resolution(
        cls,
        overrides: Optional[Mapping[str, str]] = None,
        filename: str = "<input>",
    ) -> "PreprocessContext":
        """Context for incremental resolution: config symbols, first value wins."""
        table = SymbolTable(CONFIG_SYMBOLS, ValuePolicy.FIRST, overrides)
        return cls(table, filename=filename)

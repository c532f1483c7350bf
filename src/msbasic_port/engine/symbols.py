"""
Configuration Symbol Table
==========================

The legacy source selects its target platform and feature set through a
small, closed set of build-time symbols (REALIO, ROMSW, ADDPRC, ...).
The toolchain needs partial knowledge of their values while the source
is still being rewritten, so the table records only what it has seen so
far and answers ``None`` for everything else.

Value Policies
--------------
Two stages read the table with different needs:

- ``ValuePolicy.FIRST``: incremental resolution. The earliest value seen is
  kept; a later assignment never overwrites it.
- ``ValuePolicy.LAST``: final flattening and translation bookkeeping. The
  last assignment wins, as it would in the assembler.

Overrides supplied on the command line (``REALIO=3``) always take
precedence over assignments in the source.

Assignment Spellings
--------------------
The table recognises the three spellings found in the two dialects::

    ROMSW=1          ; ca65 / MACRO-10 simple assignment
    ROMSW==1         ; MACRO-10 suppressed assignment
    ROMSW .SET 1     ; ca65 reassignable symbol
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Mapping, Optional

from msbasic_port.errors import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Closed Symbol Sets
# =============================================================================

PLATFORM_SELECTOR = "REALIO"

# Symbols that select target-specific configuration
CONFIG_SYMBOLS = frozenset({
    "ADDPRC", "BUFLEN", "BUFOFS", "BUFPAG", "CBMRND", "CLMWID", "DISKO",
    "EXTIO", "GETCMD", "INTPRC", "KIMROM", "LINLEN", "LNGERR", "LONGI",
    "NULCMD", "RAMLOC", "ROMLOC", "ROMSW", "RORSW", "STKEND", "TIME",
})

# Symbols only needed to select conditional code; stripped once resolved
TRANSIENT_SYMBOLS = frozenset({
    "CBMRND", "DISKO", "EXTIO", "GETCMD", "INTPRC", "KIMROM", "LNGERR",
    "LONGI", "NULCMD", "ROMSW", "RORSW", "TIME",
})

# Symbols the translator emits as ca65 .SET (reassignable) symbols
VARIABLE_SYMBOLS = frozenset({
    "BUFLEN", "BUFOFS", "BUFPAG", "CLMWID", "DISKO", "EXTIO", "GETCMD",
    "KIMROM", "LINLEN", "NULCMD", "Q", "RAMLOC", "ROMLOC", "ROMSW", "RORSW",
    "STKEND", "TIME",
})

ASSIGNMENT_PATTERN = re.compile(r"^\s*([A-Z]+)(?:\s*==?\s*|\s+\.SET\s+)([0-9]*)")


class ValuePolicy(Enum):
    """Which assignment wins when a symbol is assigned more than once."""
    FIRST = auto()
    LAST = auto()


@dataclass(frozen=True)
class Symbol:
    """A configuration symbol and its value (None when undefined)."""
    name: str
    value: Optional[str] = None

    @property
    def is_defined(self) -> bool:
        return self.value is not None


def parse_overrides(tokens: Iterable[str]) -> dict[str, str]:
    """
    Parse NAME=VALUE override tokens.

    Raises:
        ConfigurationError: If a token is not of the form NAME=VALUE
    """
    overrides: dict[str, str] = {}
    for token in tokens:
        name, sep, value = token.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ConfigurationError(f"invalid override '{token}' (expected NAME=VALUE)")
        overrides[name] = value.strip()
    return overrides


# =============================================================================
# Symbol Table
# =============================================================================

class SymbolTable:
    """
    Partial-knowledge mapping of symbol name to value.

    Attributes:
        names: Allowed symbol names (None accepts any identifier)
        policy: Which assignment wins on redefinition
        overrides: Values that take precedence over any assignment
    """

    def __init__(
        self,
        names: Optional[Iterable[str]] = CONFIG_SYMBOLS,
        policy: ValuePolicy = ValuePolicy.FIRST,
        overrides: Optional[Mapping[str, str]] = None,
    ):
        self.names = frozenset(names) if names is not None else None
        self.policy = policy
        self.overrides = dict(overrides or {})
        self._values: dict[str, str] = {}

    def __contains__(self, name: str) -> bool:
        return self.is_defined(name)

    def __len__(self) -> int:
        return len(set(self._values) | set(self.overrides))

    def accepts(self, name: str) -> bool:
        """Return True if the table tracks this symbol name."""
        return self.names is None or name in self.names

    def define(self, name: str, value: str) -> bool:
        """
        Record an assignment.

        Returns:
            True if the stored value changed.
        """
        if not self.accepts(name):
            return False
        if self.policy is ValuePolicy.FIRST and name in self._values:
            return False
        if self._values.get(name) == value:
            return False
        self._values[name] = value
        logger.debug(f"Symbol {name} = {value!r}")
        return True

    def lookup(self, name: str) -> Optional[str]:
        """Current value of a symbol, or None if it is not yet defined."""
        if name in self.overrides:
            return self.overrides[name]
        return self._values.get(name)

    def int_value(self, name: str) -> Optional[int]:
        """Integer value of a symbol, or None if undefined or not an integer."""
        value = self.lookup(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def is_defined(self, name: str) -> bool:
        return self.lookup(name) is not None

    def observe(self, line: str) -> Optional[Symbol]:
        """
        Record the assignment made by a source line, if any.

        Only the digit run after the assignment operator is taken as the
        value; an assignment with a non-numeric value defines the symbol
        with an empty value.

        Returns:
            The assigned symbol, or None if the line is not an assignment
            to a tracked symbol.
        """
        match = ASSIGNMENT_PATTERN.match(line)
        if not match or not self.accepts(match.group(1)):
            return None
        name, value = match.group(1), match.group(2)
        self.define(name, value)
        return Symbol(name, value)

    def snapshot(self) -> dict[str, str]:
        """Copy of all known values, overrides included."""
        values = dict(self._values)
        values.update(self.overrides)
        return values

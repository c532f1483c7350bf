"""
Ternary Condition Evaluation
============================

A ``.IF`` condition can only be decided once the symbols it mentions are
known. Until then its value is ``Ternary.UNKNOWN`` and the directive is
preserved for a later pass (or a later tool) to decide.

Supported Forms
---------------
Only the forms the translator actually produces are evaluated:

| Form               | Example              |
|--------------------|----------------------|
| simple comparison  | ``ROMSW<>0``         |
| bitwise-or         | ``(REALIO|LONGI)=0`` |
| validation guard   | ``REALIO <> 1 .AND REALIO <> 2 ...`` (always FALSE) |

Every other condition text evaluates to UNKNOWN. That is never an error:
different pipeline stages know different parts of the symbol space.

Evaluators
----------
- ``SymbolEvaluator``: decides conditions from a ``SymbolTable`` and feeds
  assignment lines into it.
- ``TableEvaluator``: decides conditions by exact text from closed sets of
  known-true and known-false conditions.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from msbasic_port.engine.symbols import SymbolTable


class Ternary(Enum):
    """Three-valued condition result."""
    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    @classmethod
    def from_bool(cls, value: bool) -> "Ternary":
        return cls.TRUE if value else cls.FALSE

    @property
    def is_known(self) -> bool:
        return self is not Ternary.UNKNOWN


# Redundant target validation inserted ahead of the platform table
REALIO_VALIDATION_GUARD = "REALIO <> 1 .AND REALIO <> 2 .AND REALIO <> 3 .AND REALIO <> 4"

SIMPLE_PATTERN = re.compile(r"^([A-Z]+)(<>|=)([0-9]+)$")
OR_PATTERN = re.compile(r"^\(([A-Z]+)\|([A-Z]+)\)(<>|=)([0-9]+)$")


@dataclass(frozen=True)
class Condition:
    """
    Parsed comparison over one or two symbols and an integer literal.

    Attributes:
        names: Symbol names; two names are combined with bitwise-or
        operator: "=" or "<>"
        literal: The literal compared against
    """
    names: tuple[str, ...]
    operator: str
    literal: int

    def compare(self, actual: int) -> bool:
        if self.operator == "=":
            return actual == self.literal
        return actual != self.literal


def parse_condition(text: str) -> Optional[Condition]:
    """Parse a condition, returning None for unsupported forms."""
    match = SIMPLE_PATTERN.match(text)
    if match:
        return Condition((match.group(1),), match.group(2), int(match.group(3)))
    match = OR_PATTERN.match(text)
    if match:
        return Condition(
            (match.group(1), match.group(2)), match.group(3), int(match.group(4))
        )
    return None


# =============================================================================
# Evaluators
# =============================================================================

class SymbolEvaluator:
    """
    Evaluates conditions against a symbol table.

    The evaluator also owns the side effect of scanning: every line the
    resolver passes over is offered to ``observe`` so that assignments
    become visible to the directives that follow them.
    """

    def __init__(self, table: SymbolTable):
        self.table = table

    def observe(self, line: str) -> None:
        self.table.observe(line)

    def snapshot(self) -> dict[str, str]:
        return self.table.snapshot()

    def evaluate(self, text: str) -> Ternary:
        if text == REALIO_VALIDATION_GUARD:
            return Ternary.FALSE

        condition = parse_condition(text)
        if condition is None:
            return Ternary.UNKNOWN

        if len(condition.names) == 1:
            actual = self.table.lookup(condition.names[0])
            if actual is None:
                return Ternary.UNKNOWN
            try:
                return Ternary.from_bool(condition.compare(int(actual)))
            except ValueError:
                # non-numeric value compares textually
                equal = actual == str(condition.literal)
                return Ternary.from_bool(equal if condition.operator == "=" else not equal)

        values = [self.table.int_value(name) for name in condition.names]
        if any(value is None for value in values):
            return Ternary.UNKNOWN
        combined = 0
        for value in values:
            combined |= value
        return Ternary.from_bool(condition.compare(combined))


class TableEvaluator:
    """
    Evaluates conditions by exact text from closed true/false sets.

    Conditions found in neither set are UNKNOWN. A condition listed in
    both sets is a configuration mistake and is rejected at construction.
    """

    def __init__(self, true_conditions: Iterable[str], false_conditions: Iterable[str]):
        self.true_conditions = frozenset(true_conditions)
        self.false_conditions = frozenset(false_conditions)
        overlap = self.true_conditions & self.false_conditions
        if overlap:
            raise ValueError(f"conditions listed as both true and false: {sorted(overlap)}")

    def observe(self, line: str) -> None:
        pass

    def snapshot(self) -> dict[str, str]:
        return {}

    def evaluate(self, text: str) -> Ternary:
        if text in self.true_conditions:
            return Ternary.TRUE
        if text in self.false_conditions:
            return Ternary.FALSE
        return Ternary.UNKNOWN

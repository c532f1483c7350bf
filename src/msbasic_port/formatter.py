"""
Resolution Pipeline
===================

Flattens translated ca65 source into a single platform variant chosen by
``NAME=VALUE`` overrides. ``REALIO`` (the platform selector) is required;
any configuration symbol may be overridden as well.

Stages
------
1. Conditional resolution to a fixed point. Symbol values come from the
   overrides first, then from the first assignment seen in the source.
2. Removal of the platform banner comments and ``.OUT`` report lines.
3. ``.SET`` collapse: of all ``NAME .SET value`` lines of a configuration
   symbol only the last survives, as ``NAME=value``. Symbols still
   assigned inside an unresolved directive keep all their lines.
4. Removal of ``NAME=`` lines of symbols that only selected code.

Example:
    >>> formatter = Formatter({"REALIO": "3"})
    >>> flat = formatter.format(lines)
"""

import logging
import re
from typing import Iterable, Mapping, Optional

from msbasic_port.engine.blocks import is_directive_end, is_directive_start
from msbasic_port.engine.conditions import SymbolEvaluator
from msbasic_port.engine.context import PreprocessContext
from msbasic_port.engine.resolver import DEFAULT_MAX_PASSES, ConditionalResolver
from msbasic_port.engine.symbols import (
    CONFIG_SYMBOLS,
    PLATFORM_SELECTOR,
    TRANSIENT_SYMBOLS,
    parse_overrides,
)
from msbasic_port.errors import ConfigurationError

logger = logging.getLogger(__name__)


REMOVE_PATTERNS = tuple(re.compile(pattern) for pattern in (
    r"^.*;5=STM$",
    r"^.*;4=APPLE.$",
    r"^.*;3=COMMODORE.$",
    r"^.*;2=OSI$",
    r"^.*;1=MOS TECH,KIM$",
    r"^.*;0=PDP-10 SIMULATING 6502$",
    r"^.*\.OUT.*",
))

SET_OPERATOR = " .SET "


def remove_lines(lines: list[str], patterns=REMOVE_PATTERNS) -> list[str]:
    """Drop every line matching one of the patterns."""
    return [line for line in lines if not any(p.match(line) for p in patterns)]


def collapse_sets(lines: list[str], names: Iterable[str] = CONFIG_SYMBOLS) -> list[str]:
    """
    Keep only the last ``NAME .SET value`` line of each symbol.

    The survivor stays in place and becomes ``NAME=value``. A symbol with
    any ``.SET`` line inside an unresolved directive still has more than
    one reachable value and is left untouched.
    """
    result = list(lines)
    for name in sorted(names):
        prefix = f"{name}{SET_OPERATOR}"
        indices = []
        guarded = False
        depth = 0
        for i, line in enumerate(result):
            if is_directive_start(line):
                depth += 1
            elif is_directive_end(line):
                depth -= 1
            elif line.startswith(prefix):
                indices.append(i)
                guarded = guarded or depth > 0
        if not indices or guarded:
            continue
        last = indices[-1]
        result[last] = result[last].replace(SET_OPERATOR, "=", 1)
        dropped = set(indices[:-1])
        result = [line for i, line in enumerate(result) if i not in dropped]
    return result


def strip_assignments(lines: list[str], names: Iterable[str] = TRANSIENT_SYMBOLS) -> list[str]:
    """Drop ``NAME=`` lines of the given symbols."""
    prefixes = tuple(f"{name}=" for name in names)
    return [line for line in lines if not line.startswith(prefixes)]


class Formatter:
    """
    Symbol-driven flattening of translated source.

    Attributes:
        overrides: Symbol values that win over any source assignment
        max_passes: Safety cap for conditional resolution
    """

    def __init__(
        self,
        overrides: Mapping[str, str],
        filename: str = "<input>",
        max_passes: int = DEFAULT_MAX_PASSES,
    ):
        if PLATFORM_SELECTOR not in overrides:
            raise ConfigurationError(f"missing required option {PLATFORM_SELECTOR}")
        self.overrides = dict(overrides)
        self.filename = filename
        self.max_passes = max_passes
        self.context: Optional[PreprocessContext] = None
        self.resolver: Optional[ConditionalResolver] = None

    @classmethod
    def from_tokens(cls, tokens: Iterable[str], **kwargs) -> "Formatter":
        """Build a formatter from ``NAME=VALUE`` tokens."""
        return cls(parse_overrides(tokens), **kwargs)

    def resolve(self, lines: list[str]) -> list[str]:
        # fresh symbol knowledge for every run
        self.context = PreprocessContext.for_resolution(self.overrides, self.filename)
        self.resolver = ConditionalResolver(
            SymbolEvaluator(self.context.symbols),
            max_passes=self.max_passes,
            filename=self.filename,
        )
        return self.resolver.resolve(lines)

    def format(self, lines: list[str]) -> list[str]:
        """
        Run the complete resolution pipeline.

        Raises:
            UnterminatedBlockError: If a directive is never closed
        """
        options = ", ".join(f"{name}={value}" for name, value in self.overrides.items())
        logger.info(f"Formatting {self.filename}: {options}")

        result = self.resolve(lines)
        logger.debug(f"Resolution: {self.resolver.stats}")
        result = remove_lines(result)
        result = collapse_sets(result)
        result = strip_assignments(result)

        logger.info(f"Formatted {self.filename}: {len(lines)} -> {len(result)} lines")
        return result

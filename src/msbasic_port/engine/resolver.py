"""
Conditional Resolver
====================

Flattens ``.IF <condition>`` / ``.ENDIF`` directives whose condition can
be decided, and preserves the rest.

Single Pass
-----------
The line stream is scanned front to back. Every line is offered to the
evaluator so that assignments update its knowledge. On a directive the
guarded body is extracted and the condition evaluated:

- TRUE: the body is spliced into the output (its top-level lines are
  observed; nested directives inside it wait for the next pass)
- FALSE: directive and body are dropped
- UNKNOWN: directive, body and ``.ENDIF`` are emitted unchanged

Only plain ``.IF <condition>`` lines are evaluated. Other ``.IF``-family
directives (``.IFDEF`` and so on) count for nesting and are always
preserved.

Fixed Point
-----------
A directive nested in a spliced body, or one that refers to a symbol
assigned further down, can only be decided on a later pass. ``resolve``
repeats the pass until neither the text nor the evaluator's knowledge
changes. A generous safety cap guards against a transform that never
settles; reaching it is logged, not raised.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from msbasic_port.engine.blocks import (
    conditional_of,
    extract_directive_block,
    is_directive_end,
    is_directive_start,
)
from msbasic_port.engine.conditions import Ternary
from msbasic_port.engine.lines import LineCursor

logger = logging.getLogger(__name__)


DEFAULT_MAX_PASSES = 100


class Evaluator(Protocol):
    """What the resolver needs from a condition evaluator."""

    def evaluate(self, text: str) -> Ternary: ...

    def observe(self, line: str) -> None: ...

    def snapshot(self) -> dict[str, str]: ...


@dataclass
class ResolutionStats:
    """
    Statistics about a resolution run.

    Attributes:
        passes: Number of passes run, including the final unchanged one
        spliced: Directives resolved TRUE (all passes)
        dropped: Directives resolved FALSE (all passes)
        preserved: Directives still UNKNOWN after the last pass
        converged: False if the safety cap stopped the run
    """
    passes: int = 0
    spliced: int = 0
    dropped: int = 0
    preserved: int = 0
    converged: bool = True

    def __str__(self) -> str:
        return (
            f"{self.passes} pass(es): {self.spliced} spliced, "
            f"{self.dropped} dropped, {self.preserved} preserved"
        )


class ConditionalResolver:
    """
    Resolves .IF directives to a fixed point.

    Attributes:
        evaluator: Decides conditions and observes assignments
        max_passes: Safety cap on the number of passes
        filename: Source name used in error locations
    """

    def __init__(
        self,
        evaluator: Evaluator,
        max_passes: int = DEFAULT_MAX_PASSES,
        filename: str = "<input>",
    ):
        self.evaluator = evaluator
        self.max_passes = max_passes
        self.filename = filename
        self.stats = ResolutionStats()

    def resolve_pass(self, lines: list[str]) -> list[str]:
        """Run one resolution pass over the line stream."""
        cursor = LineCursor(lines, self.filename)
        result: list[str] = []
        self.stats.preserved = 0

        while cursor:
            line = cursor.pop()
            self.evaluator.observe(line)
            if not is_directive_start(line):
                result.append(line)
                continue

            location = cursor.location()
            condition = conditional_of(line)
            block = extract_directive_block(cursor, location=location)
            # .IFDEF and friends are never decided here
            verdict = self.evaluator.evaluate(condition) if condition is not None else Ternary.UNKNOWN

            if not verdict.is_known:
                result.append(line)
                result.extend(block.lines)
                result.append(block.closing)
                self.stats.preserved += 1
            elif verdict is Ternary.TRUE:
                self._observe_spliced(block.lines)
                result.extend(block.lines)
                self.stats.spliced += 1
            else:
                self.stats.dropped += 1

        return result

    def _observe_spliced(self, lines: list[str]) -> None:
        """
        Observe the assignments of a spliced body.

        Assignments inside nested directives are skipped; they become
        visible once a later pass has decided the nested condition.
        """
        depth = 0
        for line in lines:
            if is_directive_start(line):
                depth += 1
            elif is_directive_end(line):
                depth -= 1
            elif depth == 0:
                self.evaluator.observe(line)

    def resolve(self, lines: list[str]) -> list[str]:
        """
        Resolve directives until a pass changes nothing.

        Returns:
            The flattened lines. Directives that stay UNKNOWN are kept.
        """
        self.stats = ResolutionStats()
        current = list(lines)

        for pass_number in range(1, self.max_passes + 1):
            known_before = self.evaluator.snapshot()
            result = self.resolve_pass(current)
            self.stats.passes = pass_number
            logger.debug(
                f"Resolve pass {pass_number}: {len(current)} -> {len(result)} lines, "
                f"{self.stats.preserved} directive(s) unresolved"
            )
            if result == current and self.evaluator.snapshot() == known_before:
                return result
            current = result

        self.stats.converged = False
        logger.warning(
            f"Conditional resolution did not converge after {self.max_passes} passes; "
            f"{self.stats.preserved} directive(s) left unresolved"
        )
        return current


def resolve_until_unchanged(
    lines: list[str],
    transform: Callable[[list[str]], list[str]],
    max_passes: int = DEFAULT_MAX_PASSES,
    name: Optional[str] = None,
) -> list[str]:
    """
    Apply a whole-stream transform until its output equals its input.

    Used by stages whose only state is the text itself.
    """
    label = name or getattr(transform, "__name__", "transform")
    current = list(lines)
    for pass_number in range(1, max_passes + 1):
        result = transform(current)
        if result == current:
            logger.debug(f"{label}: fixed point after {pass_number} pass(es)")
            return result
        current = result

    logger.warning(f"{label} did not converge after {max_passes} passes")
    return current

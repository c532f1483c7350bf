# =============================================================================
# test_resolver.py - Conditional Resolver Unit Tests
# =============================================================================
# Tests for .IF/.ENDIF flattening and fixed-point iteration.
#
# Test coverage includes:
#   - Splice / drop / preserve on TRUE / FALSE / UNKNOWN
#   - Idempotence on resolved streams
#   - Convergence for dependency chains of depth 1 to 3
#   - The safety cap
#   - resolve_until_unchanged
# =============================================================================

import logging

import pytest
from msbasic_port.engine.conditions import SymbolEvaluator, TableEvaluator, Ternary
from msbasic_port.engine.resolver import ConditionalResolver, resolve_until_unchanged
from msbasic_port.engine.symbols import SymbolTable
from msbasic_port.errors import UnterminatedBlockError


# =============================================================================
# Helper Functions
# =============================================================================

def resolver(**overrides: str) -> ConditionalResolver:
    """Resolver over a FIRST-policy config table with the given overrides."""
    return ConditionalResolver(SymbolEvaluator(SymbolTable(overrides=overrides)))


class FlipFlopEvaluator:
    """Evaluator whose knowledge never settles."""

    def __init__(self):
        self.count = 0

    def evaluate(self, text):
        return Ternary.UNKNOWN

    def observe(self, line):
        pass

    def snapshot(self):
        self.count += 1
        return {"N": str(self.count)}


# =============================================================================
# Single Pass Tests
# =============================================================================

class TestResolvePass:
    """Test the three outcomes of a directive."""

    def test_scenario_a(self):
        """REALIO=3 keeps CODE_A and removes CODE_B with both directives."""
        lines = [".IF REALIO=3", "CODE_A", ".ENDIF", ".IF REALIO<>3", "CODE_B", ".ENDIF"]
        assert resolver(REALIO="3").resolve(lines) == ["CODE_A"]

    def test_unknown_preserved(self):
        lines = ["A", ".IF DISKO<>0", "SAVE", ".ENDIF", "B"]
        assert resolver(REALIO="3").resolve(lines) == lines

    def test_unknown_body_not_processed(self):
        """Directives inside an UNKNOWN body stay as they are."""
        lines = [".IF DISKO<>0", ".IF REALIO=3", "X", ".ENDIF", ".ENDIF"]
        assert resolver(REALIO="3").resolve(lines) == lines

    def test_unknown_keeps_layout(self):
        """An undecided directive comes back exactly as written."""
        lines = [".IF\tDISKO<>0", "X", ".ENDIF\t\t;DISK"]
        assert resolver(REALIO="3").resolve(lines) == lines

    def test_tab_separated_condition_evaluated(self):
        lines = [".IF\tREALIO=3", "X", ".ENDIF"]
        assert resolver(REALIO="3").resolve(lines) == ["X"]

    def test_ifdef_preserved(self):
        lines = [".IFDEF FOO", "X", ".ENDIF"]
        r = resolver(REALIO="3")
        assert r.resolve(lines) == lines
        assert r.stats.preserved == 1

    def test_ifdef_counts_for_nesting(self):
        """The .ENDIF closing an inner .IFDEF does not end the outer body."""
        lines = [".IF REALIO=3", ".IFDEF FOO", "X", ".ENDIF", "Y", ".ENDIF", "Z"]
        assert resolver(REALIO="3").resolve(lines) == [".IFDEF FOO", "X", ".ENDIF", "Y", "Z"]

    def test_assignment_before_directive(self):
        lines = ["ROMSW .SET 1", ".IF ROMSW<>0", "ROM", ".ENDIF", ".IF ROMSW=0", "RAM", ".ENDIF"]
        assert resolver().resolve(lines) == ["ROMSW .SET 1", "ROM"]

    def test_assignment_after_directive_resolved_next_pass(self):
        """A later definition is picked up by a later pass (FIRST policy)."""
        lines = [".IF TIME<>0", "CLOCK", ".ENDIF", "TIME=1"]
        r = resolver()
        assert r.resolve(lines) == ["CLOCK", "TIME=1"]
        assert r.stats.passes == 3

    def test_first_value_wins(self):
        lines = ["RORSW .SET 1", "RORSW .SET 0", ".IF RORSW<>0", "ROR", ".ENDIF"]
        assert resolver().resolve(lines) == ["RORSW .SET 1", "RORSW .SET 0", "ROR"]

    def test_validation_guard_dropped(self):
        lines = [
            ".IF REALIO <> 1 .AND REALIO <> 2 .AND REALIO <> 3 .AND REALIO <> 4",
            '  .ERROR "bad"',
            ".ENDIF",
            "CODE",
        ]
        assert resolver(REALIO="3").resolve(lines) == ["CODE"]

    def test_unterminated_directive(self):
        with pytest.raises(UnterminatedBlockError):
            resolver(REALIO="3").resolve([".IF REALIO=3", "CODE"])

    def test_stats(self):
        lines = [".IF REALIO=3", "A", ".ENDIF", ".IF REALIO=1", "B", ".ENDIF", ".IF DISKO=0", "C", ".ENDIF"]
        r = resolver(REALIO="3")
        r.resolve(lines)
        assert r.stats.spliced == 1
        assert r.stats.dropped == 1
        assert r.stats.preserved == 1
        assert r.stats.converged


# =============================================================================
# Idempotence
# =============================================================================

class TestIdempotence:
    """Resolved streams come back unchanged."""

    def test_no_directives(self):
        lines = ["\tLDA\t#0", "BUF=256", "; comment"]
        r = resolver(REALIO="3")
        assert r.resolve(lines) == lines
        assert r.stats.passes == 1

    def test_resolving_twice(self):
        lines = [".IF REALIO=3", "A", ".ENDIF", ".IF DISKO<>0", "B", ".ENDIF"]
        once = resolver(REALIO="3").resolve(lines)
        assert resolver(REALIO="3").resolve(once) == once


# =============================================================================
# Fixed-Point Convergence
# =============================================================================

class TestConvergence:
    """Dependency chains of depth 1 to 3 settle within depth+1 passes."""

    CHAIN_1 = [
        ".IF REALIO=3",
        "ROMSW .SET 1",
        ".ENDIF",
        ".IF ROMSW<>0",
        "CODE",
        ".ENDIF",
    ]

    CHAIN_2 = [
        ".IF REALIO=3",
        "ROMSW .SET 1",
        ".IF ROMSW<>0",
        "KIMROM .SET 0",
        ".ENDIF",
        ".ENDIF",
        ".IF KIMROM=0",
        "CODE",
        ".ENDIF",
    ]

    CHAIN_3 = [
        ".IF REALIO=3",
        "ROMSW .SET 1",
        ".IF ROMSW<>0",
        "KIMROM .SET 0",
        ".IF KIMROM=0",
        "RORSW .SET 1",
        ".ENDIF",
        ".ENDIF",
        ".ENDIF",
        ".IF RORSW<>0",
        "CODE",
        ".ENDIF",
    ]

    @pytest.mark.parametrize("lines, depth, expected", [
        (CHAIN_1, 1, ["ROMSW .SET 1", "CODE"]),
        (CHAIN_2, 2, ["ROMSW .SET 1", "KIMROM .SET 0", "CODE"]),
        (CHAIN_3, 3, ["ROMSW .SET 1", "KIMROM .SET 0", "RORSW .SET 1", "CODE"]),
    ])
    def test_chain(self, lines, depth, expected):
        r = resolver(REALIO="3")
        assert r.resolve(lines) == expected
        assert r.stats.passes <= depth + 1
        assert r.stats.converged

    def test_chain_false_branch(self):
        """The same chain for another platform drops everything."""
        assert resolver(REALIO="1").resolve(self.CHAIN_3) == [".IF RORSW<>0", "CODE", ".ENDIF"]

    def test_safety_cap_logs_warning(self, caplog):
        r = ConditionalResolver(FlipFlopEvaluator(), max_passes=5)
        lines = [".IF X=0", "A", ".ENDIF"]
        with caplog.at_level(logging.WARNING, logger="msbasic_port.engine.resolver"):
            assert r.resolve(lines) == lines
        assert r.stats.passes == 5
        assert not r.stats.converged
        assert "did not converge after 5 passes" in caplog.text

    def test_table_evaluator_nested(self):
        """Nested TRUE directives unwrap one level per pass."""
        ev = TableEvaluator({"A=0", "B=0"}, set())
        lines = [".IF A=0", ".IF B=0", "X", ".ENDIF", ".ENDIF"]
        r = ConditionalResolver(ev)
        assert r.resolve(lines) == ["X"]
        assert r.stats.passes == 3


# =============================================================================
# Whole-Stream Fixed Point
# =============================================================================

class TestResolveUntilUnchanged:
    """Test the generic fixed-point driver."""

    def test_stops_when_unchanged(self):
        calls = []

        def strip_one(lines):
            calls.append(len(lines))
            return lines[1:] if lines and lines[0] == "X" else lines

        assert resolve_until_unchanged(["X", "X", "Y"], strip_one) == ["Y"]
        assert calls == [3, 2, 1]

    def test_cap_logs_warning(self, caplog):
        def grow(lines):
            return lines + ["X"]

        with caplog.at_level(logging.WARNING, logger="msbasic_port.engine.resolver"):
            result = resolve_until_unchanged([], grow, max_passes=3, name="grow")
        assert result == ["X", "X", "X"]
        assert "grow did not converge" in caplog.text

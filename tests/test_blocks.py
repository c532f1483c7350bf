# =============================================================================
# test_blocks.py - Block Extractor Unit Tests
# =============================================================================
# Tests for angle-bracket block extraction (character level) and
# .IF/.ENDIF directive block extraction (line level).
#
# Test coverage includes:
#   - Nested delimiters passed through verbatim
#   - Multi-line blocks and trailing text
#   - Exactly the needed lines consumed
#   - Unterminated blocks
# =============================================================================

import pytest
from msbasic_port.engine.blocks import conditional_of, extract_block, extract_directive_block
from msbasic_port.engine.lines import LineCursor
from msbasic_port.errors import SourceLocation, UnterminatedBlockError


# =============================================================================
# Angle-Bracket Blocks
# =============================================================================

class TestExtractBlock:
    """Test character-level block extraction."""

    def test_nested_block_verbatim(self):
        """<A<B>C> yields A<B>C with no trailing text."""
        block = extract_block("A<B>C>", LineCursor([]))
        assert block.lines == ["A<B>C"]
        assert block.trailing == ""

    def test_single_line_with_trailing(self):
        block = extract_block("\tNOP>\t;COMMENT", LineCursor([]))
        assert block.lines == ["\tNOP"]
        assert block.trailing == "\t;COMMENT"

    def test_multi_line_drops_leading_empty_line(self):
        """Opening delimiter at end of line gives no empty first line."""
        cursor = LineCursor(["\tLDA\tX", "\tSTA\tY>", "NEXT"])
        block = extract_block("", cursor)
        assert block.lines == ["\tLDA\tX", "\tSTA\tY"]
        assert block.trailing == ""

    def test_consumes_only_block_lines(self):
        cursor = LineCursor(["\tLDA\tX>", "AFTER"])
        extract_block("", cursor)
        assert cursor.rest() == ["AFTER"]

    def test_nested_across_lines(self):
        cursor = LineCursor(["\tLDAI\t<BUF&255>", "\tSTA\tTXTPTR>\t;DONE"])
        block = extract_block("", cursor)
        assert block.lines == ["\tLDAI\t<BUF&255>", "\tSTA\tTXTPTR"]
        assert block.trailing == "\t;DONE"

    def test_balanced_delimiters_in_body(self):
        """Every returned body has balanced delimiters."""
        cursor = LineCursor(["<<X>", "Y>>", "REST"])
        block = extract_block("A", cursor)
        body = "".join(block.lines)
        assert body.count("<") == body.count(">")
        assert block.trailing == ""

    def test_custom_delimiters(self):
        block = extract_block("A(B)C)D", LineCursor([]), open_char="(", close_char=")")
        assert block.lines == ["A(B)C"]
        assert block.trailing == "D"

    def test_unterminated_raises(self):
        cursor = LineCursor(["\tLDA\tX", "\tSTA\tY"])
        with pytest.raises(UnterminatedBlockError) as excinfo:
            extract_block("", cursor, location=SourceLocation("m6502.asm", 10))
        assert "missing '>'" in str(excinfo.value)
        assert "m6502.asm:10" in str(excinfo.value)


# =============================================================================
# Directive Blocks
# =============================================================================

class TestExtractDirectiveBlock:
    """Test .IF/.ENDIF block extraction."""

    def test_simple_body(self):
        cursor = LineCursor(["CODE", ".ENDIF", "AFTER"])
        block = extract_directive_block(cursor)
        assert block.lines == ["CODE"]
        assert block.closing == ".ENDIF"
        assert cursor.rest() == ["AFTER"]

    def test_closing_line_kept_verbatim(self):
        cursor = LineCursor(["CODE", ".ENDIF\t;DONE"])
        assert extract_directive_block(cursor).closing == ".ENDIF\t;DONE"

    def test_conditional_of(self):
        assert conditional_of(".IF ROMSW<>0") == "ROMSW<>0"
        assert conditional_of(".IF\tREALIO=3") == "REALIO=3"
        assert conditional_of(".IFDEF FOO") is None
        assert conditional_of(".IFNDEF FOO") is None

    def test_nested_directives_kept(self):
        cursor = LineCursor([".IF ROMSW<>0", "INNER", ".ENDIF", "OUTER", ".ENDIF"])
        block = extract_directive_block(cursor)
        assert block.lines == [".IF ROMSW<>0", "INNER", ".ENDIF", "OUTER"]
        assert not cursor

    def test_directive_counts_balanced(self):
        cursor = LineCursor([".IF A=0", ".IF B=0", "X", ".ENDIF", ".ENDIF", ".ENDIF"])
        block = extract_directive_block(cursor)
        starts = sum(line.startswith(".IF") for line in block.lines)
        ends = sum(line.startswith(".ENDIF") for line in block.lines)
        assert starts == ends == 2

    def test_unterminated_raises(self):
        cursor = LineCursor([".IF A=0", "X", ".ENDIF"])
        with pytest.raises(UnterminatedBlockError):
            extract_directive_block(cursor)

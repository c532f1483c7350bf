# =============================================================================
# test_converter.py - Translation Pipeline Tests
# =============================================================================
# Tests for the MACRO-10 to ca65 translator.
#
# Test coverage includes:
#   - Source clean-up
#   - IFE/IFN/IF1/IF2 conversion and condition translation
#   - Symbol assignment conversion
#   - The complete pipeline on a small source
# =============================================================================

import pytest
from msbasic_port.converter import CONFIG_REPORT, Converter, expand_tabs, translate_condition
from msbasic_port.engine.macros import MACRO_TABLE
from msbasic_port.engine.resolver import resolve_until_unchanged
from msbasic_port.errors import UnsupportedExpressionError, UnterminatedBlockError


# =============================================================================
# Clean-up Tests
# =============================================================================

class TestClean:
    """Test the first clean-up stage."""

    def test_comment_block(self):
        lines = ["COMMENT *", "FREE TEXT, A, B", "END OF TEXT *", "\tNOP"]
        assert Converter().clean(lines) == ["/*", "FREE TEXT, A, B", "*/", "\tNOP"]

    def test_unterminated_comment_block(self):
        with pytest.raises(UnterminatedBlockError) as excinfo:
            Converter("m6502.asm").clean(["\tNOP", "COMMENT !", "NEVER CLOSED"])
        assert excinfo.value.delimiter == "!"
        assert excinfo.value.location.line == 2

    def test_title_commented_out(self):
        assert Converter().clean(["TITLE\tBASIC"]) == ["; TITLE\tBASIC"]

    def test_subttl_form_feed_removed(self):
        assert Converter().clean(["\fSUBTTL\tPAGE ZERO."]) == ["; SUBTTL\tPAGE ZERO."]

    def test_label_split_from_if(self):
        result = Converter().clean(["PEEK:\tIFE\tREALIO-3,<NOP>"])
        assert result == ["PEEK:", "IFE\tREALIO-3,<NOP>"]

    @pytest.mark.parametrize("line, expected", [
        ("\tASL\tA,", "\tASL\tA"),
        ("\tLDA\tRESLST,Y,", "\tLDA\tRESLST,Y"),
        ("\tSTA\t258,X,\t;STORE", "\tSTA\t258,X\t;STORE"),
        ("\tNOP\t;A, B", "\tNOP\t;A, B"),
    ])
    def test_register_comma(self, line, expected):
        assert Converter().clean([line]) == [expected]

    def test_angle_bracket_expression(self):
        assert Converter().clean(["\tLDAI\t<BUF&255>"]) == ["\tLDAI\t(BUF&255)"]

    def test_nested_angle_bracket_expression(self):
        result = Converter().clean(["\tLDAI\t<<<LINLEN/CLMWID>-1>*CLMWID>"])
        assert result == ["\tLDAI\t(((LINLEN/CLMWID)-1)*CLMWID)"]


# =============================================================================
# Condition Translation Tests
# =============================================================================

class TestTranslateCondition:
    """Test the IFE/IFN expression table."""

    @pytest.mark.parametrize("expression, test_equal, expected", [
        ("REALIO", True, "REALIO=0"),
        ("REALIO-3", True, "REALIO=3"),
        ("REALIO-3", False, "REALIO<>3"),
        ("ROMSW", True, "ROMSW=0"),
        ("DISKO", False, "DISKO<>0"),
        ("TIME!EXTIO", False, "(TIME|EXTIO)<>0"),
        ("REALIO!LONGI", True, "(REALIO|LONGI)=0"),
        ("STKEND-511", False, "STKEND<>511"),
        ("<<BUF+BUFLEN>/256>-<<BUF-1>/256>", False, "BUFPAG<>0"),
    ])
    def test_supported(self, expression, test_equal, expected):
        assert translate_condition(expression, test_equal) == expected

    @pytest.mark.parametrize("expression, test_equal", [
        ("STKEND-511", True),
        ("ADDPRC+1", False),
        ("REALIO-10", True),
    ])
    def test_unsupported(self, expression, test_equal):
        with pytest.raises(UnsupportedExpressionError) as excinfo:
            translate_condition(expression, test_equal)
        assert excinfo.value.expression == expression


# =============================================================================
# Conditional Assembly Tests
# =============================================================================

class TestConvertIf:
    """Test MACRO-10 conditional conversion."""

    def convert(self, lines):
        converter = Converter()
        return resolve_until_unchanged(lines, converter.convert_if)

    def test_single_line(self):
        result = self.convert(["IFE\tREALIO-3,<\tNOP>"])
        assert result == [".IF REALIO=3", "\tNOP", ".ENDIF"]

    def test_trailing_text_reattached(self):
        result = self.convert(["IFN\tREALIO-3,<", "\tTAX>\t\t;INTO ACCX"])
        assert result == [".IF REALIO<>3", "\tTAX\t\t;INTO ACCX", ".ENDIF"]

    def test_empty_last_line_dropped(self):
        result = self.convert(["IFE\tDISKO,<", "\tNOP", ">"])
        assert result == [".IF DISKO=0", "\tNOP", ".ENDIF"]

    def test_nested_converted_outside_in(self):
        lines = ["IFE\tREALIO-3,<", "IFN\tROMSW,<\tNOP>", ">", "AFTER"]
        assert self.convert(lines) == [
            ".IF REALIO=3",
            ".IF ROMSW<>0",
            "\tNOP",
            ".ENDIF",
            ".ENDIF",
            "AFTER",
        ]

    def test_if1_with_printx(self):
        lines = ["IF1,<", "\tPRINTX\t/BASIC CONFIGURED/>", "AFTER"]
        assert self.convert(lines) == list(CONFIG_REPORT) + ["AFTER"]

    def test_if1_without_printx_dropped(self):
        assert self.convert(["IF1,<", "\tNOP>", "AFTER"]) == ["AFTER"]

    def test_if2_spliced(self):
        assert self.convert(["IF2,<", "\tNOP>", "AFTER"]) == ["\tNOP", "AFTER"]

    def test_if2_with_purge_dropped(self):
        assert self.convert(["IF2,<", "\tPURGE\tLDWD>", "AFTER"]) == ["AFTER"]

    def test_unsupported_condition_location(self):
        with pytest.raises(UnsupportedExpressionError) as excinfo:
            self.convert(["\tNOP", "IFE\tADDPRC+1,<\tNOP>"])
        assert excinfo.value.location.line == 2
        assert excinfo.value.source_line == "IFE\tADDPRC+1,<\tNOP>"

    def test_unterminated_body(self):
        with pytest.raises(UnterminatedBlockError):
            self.convert(["IFE\tREALIO-3,<", "\tNOP"])


# =============================================================================
# Symbol Conversion Tests
# =============================================================================

class TestConvertSymbols:
    """Test assignment rewriting."""

    def test_constant(self):
        result = Converter().convert_symbols(["ADDPRC==1\t\t;FOR ADDITIONAL PRECISION."])
        assert result == ["ADDPRC=1\t\t;FOR ADDITIONAL PRECISION."]

    def test_variable_symbol_becomes_set(self):
        assert Converter().convert_symbols(["\tRORSW==0"]) == ["RORSW .SET 0"]

    def test_counter(self):
        assert Converter().convert_symbols(["\tQ=Q+1"]) == ["Q .SET Q+1"]

    def test_octal_value(self):
        assert Converter().convert_symbols(["\tROMLOC==^O20000"]) == ["ROMLOC .SET $2000"]

    def test_label_and_indentation_dropped(self):
        """Assignments always start in column 1."""
        result = Converter().convert_symbols(["INIT:\tTIME==1\t;CLOCK"])
        assert result == ["TIME .SET 1\t;CLOCK"]

    def test_recorded_last_wins(self):
        converter = Converter()
        converter.convert_symbols(["LINLEN==72", "LINLEN==40"])
        assert converter.context.symbols.lookup("LINLEN") == "40"

    def test_other_lines_untouched(self):
        lines = ["\tLDA\tX", ".IF REALIO=3", "; A=B"]
        assert Converter().convert_symbols(lines) == lines


# =============================================================================
# Pipeline Tests
# =============================================================================

class TestConvert:
    """Test the complete translation."""

    SOURCE = [
        "TITLE\tBASIC",
        "SEARCH\tM6502",
        "ADDPRC==1\t\t\t;FOR ADDITIONAL PRECISION.",
        "IFE\tREALIO-3,<",
        "\tLDAI\t15>",
        "\tREPEAT\t3+ADDPRC,<ASL\tA>",
        "DEFINE\tLDWD (WD),<",
        "\tLDA\tWD",
        "\tLDY\tWD+1>",
        "\tJMPD\tJMPER+1",
    ]

    def test_convert(self):
        converter = Converter("m6502.asm")
        result = converter.convert(self.SOURCE)
        assert result == [
            "; TITLE BASIC",
            "ADDPRC=1" + " " * 24 + ";FOR ADDITIONAL PRECISION.",
            ".IF REALIO=3",
            "        LDA     #$0D",
            ".ENDIF",
            *["        ASL     A"] * 4,
            *MACRO_TABLE["LDWD (WD)"],
            "",
            "        JMP     (JMPER+1)",
        ]
        assert converter.conditionals == 1
        assert converter.macros.expanded == 1

    def test_input_not_modified(self):
        lines = list(self.SOURCE)
        Converter().convert(lines)
        assert lines == self.SOURCE

    def test_no_tabs_in_output(self):
        assert not any("\t" in line for line in Converter().convert(self.SOURCE))

    def test_expand_tabs(self):
        assert expand_tabs(["A\tB", "\tC", "ABCDEFGH\tI"]) == ["A       B", "        C", "ABCDEFGH        I"]

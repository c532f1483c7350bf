"""
Tests for the mbconv, mbresolve and mbcbm command-line tools
============================================================

These tests drive the click commands in-process and check exit codes
and written files.
"""

import pytest
from click.testing import CliRunner

from msbasic_port.cli.errors import ExitCode, exit_code_for, handle_cli_exception
from msbasic_port.cli.mbcbm import main as mbcbm
from msbasic_port.cli.mbconv import main as mbconv
from msbasic_port.cli.mbresolve import main as mbresolve
from msbasic_port.errors import ConfigurationError, PortError, UnterminatedBlockError


RESOLVE_SOURCE = "\n".join([
    ".IF REALIO=3",
    "CODE_A",
    ".ENDIF",
    ".IF REALIO<>3",
    "CODE_B",
    ".ENDIF",
]) + "\n"


# =============================================================================
# mbconv
# =============================================================================

class TestMbconv:
    """Tests for the translator command."""

    def test_version(self):
        result = CliRunner().invoke(mbconv, ["--version"])
        assert result.exit_code == 0
        assert "mbconv, version 1.0.0" in result.output

    def test_help(self):
        result = CliRunner().invoke(mbconv, ["--help"])
        assert result.exit_code == 0
        assert "INPUT_FILE" in result.output

    def test_translate(self, tmp_path):
        source = tmp_path / "m6502.asm"
        source.write_text("ADDPRC==1\n")
        target = tmp_path / "m6502.s"

        result = CliRunner().invoke(mbconv, [str(source), str(target)])

        assert result.exit_code == ExitCode.SUCCESS
        assert "in=m6502.asm out=m6502.s" in result.output
        assert target.read_text() == "ADDPRC=1\n"

    def test_unsupported_condition(self, tmp_path):
        source = tmp_path / "bad.asm"
        source.write_text("IFE\tADDPRC+1,<\n\tNOP>\n")
        target = tmp_path / "bad.s"

        result = CliRunner().invoke(mbconv, [str(source), str(target)])

        assert result.exit_code == ExitCode.CONVERSION_ERROR
        assert "ADDPRC+1" in result.output
        assert not target.exists()

    def test_missing_input(self, tmp_path):
        result = CliRunner().invoke(
            mbconv, [str(tmp_path / "missing.asm"), str(tmp_path / "out.s")]
        )
        assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# mbresolve
# =============================================================================

class TestMbresolve:
    """Tests for the resolution command."""

    def test_resolve(self, tmp_path):
        source = tmp_path / "m6502.s"
        source.write_text(RESOLVE_SOURCE)
        target = tmp_path / "cbm.s"

        result = CliRunner().invoke(mbresolve, [str(source), str(target), "REALIO=3"])

        assert result.exit_code == ExitCode.SUCCESS
        assert target.read_text() == "CODE_A\n"

    def test_missing_realio(self, tmp_path):
        source = tmp_path / "m6502.s"
        source.write_text(RESOLVE_SOURCE)
        target = tmp_path / "out.s"

        result = CliRunner().invoke(mbresolve, [str(source), str(target), "LNGERR=0"])

        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "REALIO" in result.output
        assert not target.exists()

    def test_malformed_override(self, tmp_path):
        source = tmp_path / "m6502.s"
        source.write_text(RESOLVE_SOURCE)

        result = CliRunner().invoke(
            mbresolve, [str(source), str(tmp_path / "out.s"), "REALIO=3", "LNGERR"]
        )
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_unterminated_directive(self, tmp_path):
        source = tmp_path / "m6502.s"
        source.write_text(".IF REALIO=3\nCODE_A\n")

        result = CliRunner().invoke(
            mbresolve, [str(source), str(tmp_path / "out.s"), "REALIO=3"]
        )
        assert result.exit_code == ExitCode.CONVERSION_ERROR


# =============================================================================
# mbcbm
# =============================================================================

class TestMbcbm:
    """Tests for the Commodore command."""

    def test_without_ext_io(self, tmp_path):
        source = tmp_path / "m6502.s"
        source.write_text(".IF EXTIO<>0\n\tJSR\tCMD\n.ENDIF\n.IF REALIO=3\nCODE_A\n.ENDIF\n")
        target = tmp_path / "cbm.s"

        result = CliRunner().invoke(mbcbm, [str(source), str(target), "--no-ext-io"])

        assert result.exit_code == ExitCode.SUCCESS
        assert target.read_text() == "CODE_A\n"

    def test_leftover_sets_noted(self, tmp_path):
        source = tmp_path / "m6502.s"
        source.write_text("FOO .SET 1\n")

        result = CliRunner().invoke(mbcbm, [str(source), str(tmp_path / "cbm.s")])

        assert result.exit_code == ExitCode.SUCCESS
        assert "1 .SET line(s) not covered" in result.output


# =============================================================================
# Exit Codes
# =============================================================================

class TestExitCodes:
    """Tests for exception to exit code mapping."""

    def test_mapping(self):
        assert exit_code_for(ConfigurationError("missing required option REALIO")) == ExitCode.INVALID_ARGS
        assert exit_code_for(FileNotFoundError("m6502.asm")) == ExitCode.INVALID_ARGS
        assert exit_code_for(UnterminatedBlockError(".ENDIF")) == ExitCode.CONVERSION_ERROR
        assert exit_code_for(PortError("bad source")) == ExitCode.CONVERSION_ERROR
        assert exit_code_for(RuntimeError("bug")) == ExitCode.INTERNAL_ERROR

    def test_port_error_prefixed(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            handle_cli_exception(PortError("bad source"), error_type="Resolution")
        assert excinfo.value.code == ExitCode.CONVERSION_ERROR
        assert "Resolution error: bad source" in capsys.readouterr().err

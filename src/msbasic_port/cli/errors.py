"""
Exit Codes for mbconv, mbresolve and mbcbm
==========================================

All three tools report failures the same way: a problem in the source
being ported exits with 1, a problem with the command line (including a
missing or malformed NAME=VALUE override) exits with 2, and anything
unexpected exits with 3.

Source errors are printed as the compiler-style diagnostic built by
``PreprocessorError``::

    m6502.asm:812:1: error: unsupported expression 'REALIO-9'
        IFE REALIO-9,<
        ^
    hint: add a translation for this condition
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Process exit codes shared by the porting tools."""
    SUCCESS = 0
    CONVERSION_ERROR = 1  # Untranslatable or malformed source
    INVALID_ARGS = 2      # Bad arguments, overrides or input files
    INTERNAL_ERROR = 3    # Bug in the tool


def exit_code_for(error: Exception) -> ExitCode:
    """Exit code a porting tool uses for an exception."""
    from msbasic_port.errors import ConfigurationError, PortError

    # overrides are command-line arguments
    if isinstance(error, (ConfigurationError, click.BadParameter, FileNotFoundError, PermissionError)):
        return ExitCode.INVALID_ARGS
    if isinstance(error, PortError):
        return ExitCode.CONVERSION_ERROR
    return ExitCode.INTERNAL_ERROR


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception from a porting run and exit.

    Args:
        error: The exception that ended the run
        verbose: If True, print the traceback of internal errors
        error_type: Pipeline name used as prefix for non-diagnostic
            errors (e.g. "Resolution")

    Raises:
        SystemExit: Always, with the code from ``exit_code_for``
    """
    from msbasic_port.errors import PreprocessorError

    code = exit_code_for(error)

    if isinstance(error, PreprocessorError):
        # already carries location, source line and hint
        click.echo(str(error), err=True)
    elif code is ExitCode.CONVERSION_ERROR:
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
    elif code is ExitCode.INVALID_ARGS:
        click.echo(f"Error: {error}", err=True)
    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()

    sys.exit(code)

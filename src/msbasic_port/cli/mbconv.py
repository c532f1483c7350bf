"""
mbconv - MACRO-10 to ca65 Translator Command-Line Interface
===========================================================

Translates the MACRO-10 source of Microsoft BASIC for the 6502 into
cc65/ca65 syntax. The output keeps every platform variant behind
``.IF``/``.ENDIF`` directives; use ``mbresolve`` or ``mbcbm`` to select one.

Usage Examples
--------------
Translate the original source:
    $ mbconv m6502.asm m6502.s

Verbose mode:
    $ mbconv -v m6502.asm m6502.s

Exit Codes
----------
0 - Success
1 - Unsupported construct in the source
2 - Invalid arguments or missing files
3 - Internal error
"""

from pathlib import Path

import click

from msbasic_port import __version__
from msbasic_port.cli import setup_logging
from msbasic_port.cli.errors import handle_cli_exception
from msbasic_port.converter import Converter
from msbasic_port.sourcefile import read_lines, write_lines


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mbconv")
def main(input_file: Path, output_file: Path, verbose: bool) -> None:
    """
    Convert MACRO-10 source to cc65/ca65 syntax.

    INPUT_FILE is the MACRO-10 source (m6502.asm); OUTPUT_FILE receives
    the ca65 translation.

    \b
    Examples:
        mbconv m6502.asm m6502.s
        mbconv -v m6502.asm m6502.s
    """
    setup_logging(verbose)
    click.echo(f"Convert MACRO-10 source file to cc65 syntax in={input_file.name} out={output_file.name}")

    try:
        converter = Converter(filename=input_file.name)
        lines = converter.convert(read_lines(input_file))
        write_lines(output_file, lines)

        if verbose:
            click.echo(f"Wrote {len(lines)} lines to {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Translation")


if __name__ == "__main__":
    main()

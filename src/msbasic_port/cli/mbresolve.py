"""
mbresolve - Platform Flattening Command-Line Interface
=====================================================

Flattens translated ca65 source into a single platform variant. The
platform and any other configuration symbol are chosen with NAME=VALUE
overrides; REALIO is required.

REALIO Values
-------------
1 - MOS Technology KIM-1
2 - Ohio Scientific (OSI)
3 - Commodore
4 - Apple
5 - STM

Usage Examples
--------------
KIM-1 variant:
    $ mbresolve m6502.s kim.s REALIO=1

Apple variant without long error messages:
    $ mbresolve m6502.s apple.s REALIO=4 LNGERR=0

Exit Codes
----------
0 - Success
1 - Malformed directive structure in the source
2 - Invalid arguments, missing REALIO or missing files
3 - Internal error
"""

from pathlib import Path

import click

from msbasic_port import __version__
from msbasic_port.cli import setup_logging
from msbasic_port.cli.errors import handle_cli_exception
from msbasic_port.formatter import Formatter
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
@click.argument("overrides", nargs=-1)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mbresolve")
def main(input_file: Path, output_file: Path, overrides: tuple[str, ...], verbose: bool) -> None:
    """
    Create a formatted single-platform source.

    INPUT_FILE is ca65 source produced by mbconv; OUTPUT_FILE receives the
    flattened source. OVERRIDES are NAME=VALUE symbol values and must
    include REALIO.

    \b
    Examples:
        mbresolve m6502.s kim.s REALIO=1
        mbresolve m6502.s apple.s REALIO=4 LNGERR=0
    """
    setup_logging(verbose)

    try:
        formatter = Formatter.from_tokens(overrides, filename=input_file.name)
        click.echo(f"Create formatted source {output_file.name}, {', '.join(overrides)}")

        lines = formatter.format(read_lines(input_file))
        write_lines(output_file, lines)

        if verbose:
            click.echo(f"Resolution: {formatter.resolver.stats}")
            click.echo(f"Wrote {len(lines)} lines to {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Resolution")


if __name__ == "__main__":
    main()

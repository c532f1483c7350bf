"""
mbcbm - Commodore Flattening Command-Line Interface
===================================================

Flattens translated ca65 source into the Commodore variant using a
fixed profile of known conditions. Configuration lines the profile does
not cover are reported as warnings.

Usage Examples
--------------
Commodore variant with external I/O:
    $ mbcbm m6502.s cbm.s

Without external I/O:
    $ mbcbm m6502.s cbm.s --no-ext-io

Exit Codes
----------
0 - Success
1 - Malformed directive structure in the source
2 - Invalid arguments or missing files
3 - Internal error
"""

from pathlib import Path

import click

from msbasic_port import __version__
from msbasic_port.cli import setup_logging
from msbasic_port.cli.errors import handle_cli_exception
from msbasic_port.commodore import CommodoreFormatter
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
    "--ext-io/--no-ext-io",
    default=True,
    help="Include external I/O commands (default: enabled)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mbcbm")
def main(input_file: Path, output_file: Path, ext_io: bool, verbose: bool) -> None:
    """
    Create the Commodore variant of a translated source.

    INPUT_FILE is ca65 source produced by mbconv; OUTPUT_FILE receives the
    Commodore source.

    \b
    Examples:
        mbcbm m6502.s cbm.s
        mbcbm m6502.s cbm.s --no-ext-io
    """
    setup_logging(verbose)

    try:
        formatter = CommodoreFormatter(ext_io=ext_io, filename=input_file.name)
        lines = formatter.format(read_lines(input_file))
        write_lines(output_file, lines)

        if verbose:
            click.echo(f"Resolution: {formatter.resolver.stats}")
            click.echo(f"Wrote {len(lines)} lines to {output_file}")
        if formatter.leftover_sets:
            click.echo(f"{len(formatter.leftover_sets)} .SET line(s) not covered by the profile", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Commodore")


if __name__ == "__main__":
    main()

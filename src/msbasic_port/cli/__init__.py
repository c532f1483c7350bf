"""
msbasic-port Command-Line Interface
===================================

This package provides the command-line tools of msbasic-port:

- **mbconv**: MACRO-10 to ca65 translator
- **mbresolve**: Platform flattening driven by NAME=VALUE overrides
- **mbcbm**: Commodore flattening

Each tool is implemented as a Click-based CLI application and shares
the logging setup and error handling defined here and in ``errors``.
"""

import logging

__all__ = ["mbconv", "mbresolve", "mbcbm", "setup_logging"]


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )

"""
Line-oriented source file access.

Pipelines work on lists of lines without terminators. Output is only
written once a pipeline has finished, so a failed run never leaves a
partial file behind.
"""

from pathlib import Path
from typing import Iterable, Union

PathLike = Union[str, Path]

ENCODING = "utf-8"


def read_lines(path: PathLike) -> list[str]:
    """Read a text file as a list of lines (terminators removed)."""
    return Path(path).read_text(encoding=ENCODING).splitlines()


def write_lines(path: PathLike, lines: Iterable[str]) -> None:
    """Write lines to a text file, each followed by a newline."""
    text = "".join(f"{line}\n" for line in lines)
    Path(path).write_text(text, encoding=ENCODING)

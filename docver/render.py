"""
Rendering functions for docver output.

This module handles all pretty-printing.
Core functions return data, this module makes it human-readable.
"""

from typing import Iterable, List, Optional, Tuple

from rich.console import Console
from rich.text import Text

from .domain.version import Version

console = Console()


def format_version_line(version: Version, aliases: List[str]) -> Text:
    """
    One listing line: tag, optional title, optional aliases.

    Example:
        1.0.0 (First release) [latest, stable]
    """
    line = Text(version.tag, style="green")
    if version.title is not None:
        line.append(" (")
        line.append(version.title, style="blue")
        line.append(")")
    if aliases:
        line.append(" [")
        line.append(", ".join(aliases), style="yellow")
        line.append("]")
    return line


def render_version_list(
    rows: Iterable[Tuple[Version, List[str]]],
    out: Optional[Console] = None,
) -> None:
    """
    Print deployed versions, one per line, in listing order.

    Args:
        rows: (Version, aliases) pairs
        out: Console to print to (default: module console on stdout)
    """
    out = out or console
    printed = False
    for version, aliases in rows:
        out.print(format_version_line(version, aliases), soft_wrap=True)
        printed = True
    if not printed:
        out.print("[yellow]No versions deployed.[/yellow]")

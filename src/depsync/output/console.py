"""Rich Console factory and theme for depsync output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEPSYNC_THEME = Theme(
    {
        "ds.ok": "bold green",
        "ds.error": "bold red",
        "ds.warning": "bold yellow",
        "ds.op": "bold cyan",
        "ds.key": "dim",
        "ds.id": "bold blue",
        "ds.path": "dim",
        "ds.kind.expected-shared-utility": "green",
        "ds.kind.incomplete-abstraction": "yellow",
        "ds.kind.layering-violation-candidate": "red",
        "ds.count": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DEPSYNC_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for a diamond pattern kind."""
    style = f"ds.kind.{kind}"
    return style if style in DEPSYNC_THEME.styles else ""

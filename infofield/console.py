"""Console interface for infofield.

Usage:
    from infofield.console import console

    with console.spinner("Evolving..."):
        run_steps()

    console.success("Done", detail="200 steps")
    console.warn("dt above stability limit")
    console.error("Failed", detail=str(err))
    console.table("Evolution", ["step", "total"], rows)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Optional, Sequence

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

# (mark, mark style) per message level
_LEVELS = {
    "success": ("✓", "bold green"),
    "warn": ("⚠", "yellow"),
    "error": ("✗", "bold red"),
    "info": ("•", "blue"),
}


class Console:
    """Status lines, run headers and snapshot tables on top of a rich console.

    Pass `output` to redirect everything (e.g. a recording console in tests).
    """

    __slots__ = ("_out",)

    def __init__(self, output: Optional[RichConsole] = None) -> None:
        self._out = output if output is not None else RichConsole()

    @property
    def output(self) -> RichConsole:
        return self._out

    def _line(self, level: str, message: str, detail: Optional[str]) -> None:
        mark, style = _LEVELS[level]
        suffix = f" [dim]{detail}[/dim]" if detail else ""
        self._out.print(f"[{style}]{mark}[/{style}] {message}{suffix}")

    @contextmanager
    def spinner(self, message: str):
        with self._out.status(f"[bold cyan]{message}", spinner="dots"):
            yield

    def success(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("success", message, detail)

    def warn(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("warn", message, detail)

    def error(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("error", message, detail)

    def info(self, message: str, *, detail: Optional[str] = None) -> None:
        self._line("info", message, detail)

    def header(self, title: str, **fields: str) -> None:
        """Run parameters as a two-column panel."""
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold")
        grid.add_column()
        for key, value in fields.items():
            grid.add_row(key, str(value))
        self._out.print(Panel(grid, title=f"[cyan]{title}[/cyan]", border_style="blue", expand=False))

    def table(self, title: str, columns: Sequence[str], rows: Iterable[Sequence[object]]) -> None:
        t = Table(title=title, title_style="cyan", header_style="bold")
        for col in columns:
            t.add_column(col, justify="right")
        for row in rows:
            t.add_row(*(str(v) for v in row))
        self._out.print(t)


console = Console()

"""Terminal output styling and rich renderers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .locator import ThemeEntry

THEME_ACCENT = "#7FA6D9"
THEME_DIM = "#66788A"
THEME_ROW = "#C8D8EE"
THEME_SELECTED = "bold #E7EEF8"
THEME_MATCH = "#57DB9C"
THEME_WARN = "#D08770"


def build_banner(version: str) -> str:
    return (
        f"[bold {THEME_ACCENT}]termtheme[/bold {THEME_ACCENT}] "
        f"[dim]v{version} · terminal theme switcher[/dim]"
    )


def render_theme_list(console: Console, entries: Sequence[ThemeEntry],
                      current: Optional[Path] = None) -> None:
    if not entries:
        console.print(f"[{THEME_DIM}]No themes found.[/{THEME_DIM}]")
        return

    table = Table(show_header=True, header_style=f"bold {THEME_ACCENT}", box=None, pad_edge=False)
    table.add_column("", width=1)
    table.add_column("Theme")
    table.add_column("File", style=THEME_DIM)
    for entry in entries:
        active = current is not None and entry.path == current
        mark = f"[{THEME_MATCH}]●[/{THEME_MATCH}]" if active else ""
        name = escape(entry.name)
        if active:
            name = f"[bold {THEME_MATCH}]{name}[/bold {THEME_MATCH}]"
        table.add_row(mark, name, escape(entry.path.name))
    console.print(table)


def render_config_panel(console: Console, summary: dict) -> None:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("key", style=THEME_DIM)
    table.add_column("value")
    for key, value in summary.items():
        table.add_row(key, escape(str(value)))
    console.print(table)


def render_error(console: Console, kind: str, message: str) -> None:
    label = escape(f"[{kind}]")
    console.print(f"[bold red]error{label}[/bold red]: {escape(message)}",
                  highlight=False, soft_wrap=True)

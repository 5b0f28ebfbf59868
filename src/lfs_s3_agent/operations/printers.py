"""
Human-readable output formatting for the cache inspection commands.

Never used by the protocol loop: stdout belongs to Git LFS while the agent
runs.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from rich.console import Console
from rich.table import Table

from .cache_check import EntryReport

_console = Console()


def print_cache_path(oid: str, path: Path, cached: bool) -> None:
    """Print where an object resolves in the cache and whether a file is there."""
    _console.print(f"[bold]Object:[/] {oid}")
    _console.print(f"[bold]Path:[/] {path}")
    state = "[green]present[/]" if cached else "[dim]absent[/]"
    _console.print(f"[bold]Cached:[/] {state}")


def print_verify_summary(reports: Sequence[EntryReport], purged: int = 0, verbose: bool = False) -> None:
    """
    Print the result of a cache verification pass.

    Shows a table of bad entries (all entries when verbose) and a summary line.
    """
    bad: List[EntryReport] = [r for r in reports if not r.ok]
    shown = list(reports) if verbose else bad

    if shown:
        table = Table(title="Cache entries")
        table.add_column("Shard", style="cyan")
        table.add_column("Name")
        table.add_column("Size", justify="right")
        table.add_column("Status")
        for report in shown:
            status = "[green]ok[/]" if report.ok else f"[red]{report.problem}[/]"
            table.add_row(report.entry.shard, report.entry.name, _format_bytes(report.entry.size), status)
        _console.print(table)

    _console.print(f"[bold]Checked:[/] {len(reports)} entries, [bold]bad:[/] {len(bad)}")
    if purged:
        _console.print(f"[bold]Removed:[/] {purged} leftover staging files")


def _format_bytes(size: int) -> str:
    """Format byte count as human-readable string."""
    value = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if value < 1024.0:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024.0
    return f"{value:.1f} PB"

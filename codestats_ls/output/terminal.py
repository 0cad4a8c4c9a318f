"""Rich terminal output for the cache maintenance commands."""
from __future__ import annotations

from rich.console import Console
from rich.table import Table

from codestats_ls.models import Pulse

# stdout is the LSP channel when serving; these commands only run standalone.
console = Console()


def render_cached_pulses(pulses: list[Pulse], cache_dir: str, out: Console | None = None) -> None:
    out = out or console
    if not pulses:
        out.print(f"[dim]No cached XP pulses in {cache_dir}[/dim]")
        return

    table = Table(title=f"Cached XP pulses ({cache_dir})", title_justify="left")
    table.add_column("Coded at", style="cyan", no_wrap=True)
    table.add_column("Languages")
    table.add_column("XP", justify="right", style="bold")

    total = 0
    for pulse in pulses:
        languages = ", ".join(
            f"{lang} {xp}" for lang, xp in sorted(pulse.counts().items()))
        table.add_row(pulse.coded_at, languages, str(pulse.total_xp))
        total += pulse.total_xp

    out.print(table)
    noun = "pulse" if len(pulses) == 1 else "pulses"
    out.print(f"  {len(pulses)} {noun}, [bold]{total}[/bold] XP waiting to be sent")


def render_flush_result(sent: int, remaining: int, out: Console | None = None) -> None:
    out = out or console
    if sent:
        out.print(f"  [green]Sent {sent}[/green] cached XP pulse{'s' if sent != 1 else ''}")
    else:
        out.print("  [dim]Nothing sent[/dim]")
    if remaining:
        out.print(f"  [yellow]{remaining} still cached[/yellow] (will retry while the server runs)")


def render_cleared(removed: int, out: Console | None = None) -> None:
    out = out or console
    out.print(f"  Removed {removed} cached XP pulse{'s' if removed != 1 else ''}")

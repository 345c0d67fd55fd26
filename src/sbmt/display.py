# display.py
# All terminal output for the sbmt demo.
#
# This module owns presentation entirely. Library modules never print;
# they log, and configure_logging() routes those records through rich.
#
# Colour language:
#   cyan    : tree wiring / configuration
#   yellow  : roots and paths
#   green   : committed updates
#   magenta : rollbacks
#   red     : failures, halts

import logging

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from sbmt.config import TreeConfig
from sbmt.models import PathResult, UpdateLogEntry

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 24) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


def configure_logging(level: int = logging.INFO) -> None:
    """Send sbmt log records to the shared rich console."""
    handler = RichHandler(console=console, show_path=False, markup=False)
    logger = logging.getLogger("sbmt")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


# ---------------------------------------------------------------------------
# Tree state
# ---------------------------------------------------------------------------


def banner(config: TreeConfig) -> None:
    storage = config.storage_path or "in-memory"
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]sbmt: storage-backed Merkle tree[/bold cyan]\n\n"
            f"[dim]Prefix        :[/dim] [white]{config.prefix}[/white]\n"
            f"[dim]Depth         :[/dim] [white]{config.depth}[/white]\n"
            f"[dim]Default leaf  :[/dim] [white]{config.default_value}[/white]\n"
            f"[dim]Storage       :[/dim] [white]{storage}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def root(label: str, value: str) -> None:
    console.print(_label(label, "yellow"), f"[yellow] {value}[/yellow]")


def updated(index: int, value: str, new_root: str) -> None:
    console.print(
        _label("UPDATE", "green"),
        f"[green] leaf {index} ← {value!r}[/green]  [dim]root {_mono(new_root)}[/dim]",
    )


def path(index: int, result: PathResult) -> None:
    console.print()
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold yellow", padding=(0, 1))
    table.add_column("Level", justify="center", width=6)
    table.add_column("Side", justify="center", width=6)
    table.add_column("Sibling", style="yellow")

    for level, (sibling, bit) in enumerate(zip(result.path_elements, result.path_index)):
        table.add_row(str(level), "right" if bit else "left", sibling)

    console.print(
        Panel(
            table,
            title=_label(f"PATH: LEAF {index}", "yellow"),
            subtitle=f"[dim]Root: {result.root}[/dim]",
            border_style="yellow",
            padding=(0, 1),
        )
    )


def update_log(pointer: int, entries: list[UpdateLogEntry]) -> None:
    console.print()
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("#", justify="center", width=4)
    table.add_column("Leaf", justify="center", width=6)
    table.add_column("Old", style="dim white")
    table.add_column("New", style="bold white")

    for seq, entry in enumerate(entries):
        table.add_row(str(seq), str(entry.index), entry.old_element, entry.new_element)

    console.print(
        Panel(
            table,
            title=_label("UPDATE LOG", "cyan"),
            subtitle=f"[dim]Pointer: {pointer}[/dim]",
            border_style="cyan",
            padding=(0, 1),
        )
    )


# ---------------------------------------------------------------------------
# Rollback
# ---------------------------------------------------------------------------


def rolled_back(count: int, new_root: str) -> None:
    console.print()
    console.print(Rule(f"[magenta]ROLLBACK × {count}[/magenta]", style="magenta"))
    console.print(_label("ROLLBACK", "magenta"), f"[magenta] root now {_mono(new_root)}[/magenta]")


def rolled_back_to_root(count: int, target: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold magenta]Undid {count} update(s).[/bold magenta]\n"
            f"[dim]Tree root restored to {target}[/dim]",
            title=_label("ROLLBACK TO ROOT ✓", "magenta"),
            border_style="magenta",
            padding=(0, 2),
        )
    )


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]{reason}[/bold red]",
            title=_label("HALTED", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )

"""Console, step tracker and interactive selection shared by the CLI."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import readchar
import typer
from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

console = Console()

BANNER = """
╔╗╔╔═╗═╗ ╦╔╦╗╔═╗╔╦╗╔═╗╦═╗╔╦╗
║║║║╣ ╔╩╦╝ ║ ╚═╗ ║ ╠═╣╠╦╝ ║
╝╚╝╚═╝╩ ╚═ ╩ ╚═╝ ╩ ╩ ╩╩╚═ ╩
"""

TAGLINE = "Create Next.js apps from templates and examples"


def show_banner():
    styled = Text()
    for line, color in zip(BANNER.strip().split("\n"), ("bright_blue", "blue", "cyan")):
        styled.append(line + "\n", style=color)
    console.print(Align.center(styled))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    SKIPPED = "skipped"


# status -> (symbol, label style)
STATUS_STYLES = {
    StepStatus.PENDING: ("[green dim]○[/green dim]", "bright_black"),
    StepStatus.RUNNING: ("[cyan]○[/cyan]", "white"),
    StepStatus.DONE: ("[green]●[/green]", "white"),
    StepStatus.ERROR: ("[red]●[/red]", "white"),
    StepStatus.SKIPPED: ("[yellow]○[/yellow]", "white"),
}


@dataclass
class Step:
    key: str
    label: str
    status: StepStatus = StepStatus.PENDING
    detail: str = ""

    def line(self) -> str:
        symbol, style = STATUS_STYLES[self.status]
        detail = self.detail.strip()
        if self.status is StepStatus.PENDING:
            text = f"{self.label} ({detail})" if detail else self.label
            return f"{symbol} [{style}]{text}[/{style}]"
        line = f"{symbol} [{style}]{self.label}[/{style}]"
        if detail:
            line += f" [bright_black]({detail})[/bright_black]"
        return line


class StepTracker:
    """Ordered pipeline steps, rendered as a rich tree once the run is over.

    Steps are declared up front with ``add``; a status change for an unknown
    key appends a step labelled with the key.
    """

    def __init__(self, title: str):
        self.title = title
        self.steps: dict[str, Step] = {}

    def add(self, key: str, label: str):
        self.steps.setdefault(key, Step(key, label))

    def start(self, key: str, detail: str = ""):
        self._set(key, StepStatus.RUNNING, detail)

    def complete(self, key: str, detail: str = ""):
        self._set(key, StepStatus.DONE, detail)

    def error(self, key: str, detail: str = ""):
        self._set(key, StepStatus.ERROR, detail)

    def skip(self, key: str, detail: str = ""):
        self._set(key, StepStatus.SKIPPED, detail)

    def status(self, key: str) -> Optional[StepStatus]:
        step = self.steps.get(key)
        return step.status if step else None

    def skip_pending(self, detail: str = ""):
        for step in self.steps.values():
            if step.status is StepStatus.PENDING:
                self._set(step.key, StepStatus.SKIPPED, detail)

    def _set(self, key: str, status: StepStatus, detail: str):
        step = self.steps.setdefault(key, Step(key, key))
        step.status = status
        if detail:
            step.detail = detail

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps.values():
            tree.add(step.line())
        return tree


KEYMAP = {
    readchar.key.UP: "up",
    readchar.key.DOWN: "down",
    readchar.key.ENTER: "enter",
    readchar.key.ESC: "escape",
}


def read_key() -> str:
    """Read one keypress and name the navigation keys."""
    key = readchar.readkey()
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt
    return KEYMAP.get(key, key)


def _selection_panel(options: dict[str, str], keys: list[str], index: int, title: str) -> Panel:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", width=3)
    table.add_column(style="white")
    for i, key in enumerate(keys):
        table.add_row("▶" if i == index else " ", f"[cyan]{key}[/cyan] [dim]({options[key]})[/dim]")
    table.add_row("", "")
    table.add_row("", "[dim]↑/↓ move, Enter selects, Esc cancels[/dim]")
    return Panel(table, title=f"[bold]{title}[/bold]", border_style="cyan", padding=(1, 2))


def select_with_arrows(options: dict[str, str], prompt_text: str, default_key: Optional[str] = None) -> str:
    """Let the user pick one of ``options`` (key -> description) with the arrow keys.

    Returns the chosen key. Esc or Ctrl-C exits the command with status 1.
    """
    if not options:
        raise ValueError("select_with_arrows needs at least one option")
    keys = list(options)
    index = keys.index(default_key) if default_key in options else 0

    console.print()
    with Live(_selection_panel(options, keys, index, prompt_text), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = read_key()
            except KeyboardInterrupt:
                key = "escape"
            if key == "enter":
                return keys[index]
            if key == "escape":
                console.print("[yellow]Selection cancelled[/yellow]")
                raise typer.Exit(1)
            if key in ("up", "down"):
                index = (index + (1 if key == "down" else -1)) % len(keys)
                live.update(_selection_panel(options, keys, index, prompt_text), refresh=True)

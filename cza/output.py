"""Terminal output and logging for cza.

``Output`` is the single object through which commands print: it owns a
stdout console for progress and results and a stderr console for errors.
One instance is built by the CLI entry point and passed to every component
that reports to the user.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Iterable

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cza.errors import CzaError

LOG_LEVEL_ENV = "CZA_LOG"


class Output:
    """Consistent, styled CLI messaging.

    Args:
        color: When ``False`` all styling is stripped.
        console: Optional stdout console (tests inject a recording console).
        err_console: Optional stderr console.
    """

    def __init__(
        self,
        color: bool = True,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.color = color
        self.console = console or Console(no_color=not color, highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(
            stderr=True, no_color=not color, highlight=False, soft_wrap=True
        )

    # -- Status lines ------------------------------------------------------

    def success(self, message: str) -> None:
        self.console.print(f"[bold green]:white_check_mark: {escape(message)}[/bold green]")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i {escape(message)}[/blue]")

    def warning(self, message: str) -> None:
        self.console.print(f"[bold yellow]! {escape(message)}[/bold yellow]")

    def error(self, message: str) -> None:
        self.err_console.print(f"[bold red]x {escape(message)}[/bold red]")

    def step(self, message: str) -> None:
        self.console.print(f"[cyan]> {escape(message)}[/cyan]")

    def plain(self, message: str) -> None:
        self.console.print(escape(message))

    # -- Structured blocks -------------------------------------------------

    def directory(self, path: str) -> None:
        self.console.print(f"Location: [bold magenta]{escape(path)}[/bold magenta]")

    def next_steps(self, steps: Iterable[str]) -> None:
        steps = list(steps)
        if not steps:
            return
        self.console.print()
        self.console.print("[bold cyan]Next steps:[/bold cyan]")
        for line in steps:
            self.console.print(f"  [dim]{escape(line)}[/dim]")

    def command_example(self, description: str, command: str) -> None:
        self.console.print(f"  [dim]{escape(description)}[/dim]: [bold green]{escape(command)}[/bold green]")

    def header(self, title: str) -> None:
        self.console.print()
        self.console.print(f"[bold underline]{escape(title)}[/bold underline]")
        self.console.print()

    def key_value(self, key: str, value: str) -> None:
        self.console.print(f"   [bold]{escape(key)}[/bold]: {escape(value)}")

    def template_item(self, key: str, name: str) -> None:
        self.console.print(f"  [bold green]{escape(key)}[/bold green] - [dim]{escape(name)}[/dim]")

    def template_detailed(
        self,
        key: str,
        name: str,
        description: str,
        frameworks: list[str],
        repository: str,
        subfolder: str,
        revision: str | None = None,
    ) -> None:
        self.console.print(f"[bold green]{escape(key)}[/bold green]")
        self.key_value("Name", name)
        self.key_value("Description", description)
        self.key_value("Frameworks", ", ".join(frameworks))
        self.key_value("Repository", repository)
        self.key_value("Subfolder", subfolder)
        if revision:
            self.key_value("Revision", revision)
        self.console.print()

    def summary_table(self, data: dict[str, str], title: str = "Summary") -> None:
        """Print a two-column key/value summary table."""
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="dim", no_wrap=True)
        table.add_column("Value")
        for key, value in data.items():
            table.add_row(escape(key), escape(str(value)))
        self.console.print(table)

    def print_json(self, data: Any) -> None:
        """Print *data* as indented JSON without any markup processing."""
        self.console.print_json(json.dumps(data))

    # -- Errors ------------------------------------------------------------

    def format_error(self, exc: BaseException) -> None:
        """Print a fatal error followed by its guidance lines on stderr."""
        message = str(exc)
        self.error(message)

        hint = exc.hint if isinstance(exc, CzaError) else None
        if hint:
            self._err_info(hint)
        elif "not found" in message:
            self._err_info("Use 'cza list' to see available templates.")
        elif "already exists" in message:
            self._err_info("Choose a different project name or remove the existing directory.")
        elif "Project name" in message:
            self._err_info(
                "Project names start with a letter and contain only letters, digits, "
                "hyphens, and underscores."
            )

    def _err_info(self, message: str) -> None:
        self.err_console.print(f"[blue]i {escape(message)}[/blue]")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(verbose: bool = False, color: bool = True) -> None:
    """Route ``logging`` through Rich on stderr.

    ``$CZA_LOG`` (a level name such as ``DEBUG``) wins over *verbose*.
    """
    level_name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if level_name and isinstance(logging.getLevelName(level_name), int):
        level = logging.getLevelName(level_name)
    else:
        level = logging.DEBUG if verbose else logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True, no_color=not color),
        show_path=False,
        show_time=False,
        markup=False,
    )
    logging.basicConfig(level=level, format="%(name)s: %(message)s", handlers=[handler], force=True)

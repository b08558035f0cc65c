"""
Console management for kbcli-builder.

Renders builder messages in the terminal and prints errors, warnings and
notes consistently.
"""

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .messages import (
    FilterInputSection,
    Message,
    PlaintextMessage,
    PlaintextSection,
    PreviewSection,
)
from .types import Menu


class ConsoleManager:
    """Manages console output for kbcli-builder."""

    def __init__(self) -> None:
        self.console = Console()
        self.error_console = Console(stderr=True)

    def print(self, message: str, markup: bool = True, end: str = "\n") -> None:
        self.console.print(message, markup=markup, highlight=False, end=end)

    def print_raw(self, message: str, end: str = "") -> None:
        """Print raw output without markup or highlighting."""
        self.console.print(
            message, markup=False, highlight=False, end=end, soft_wrap=True
        )

    def print_error(self, message: str, end: str = "\n") -> None:
        self.error_console.print(f"[bold red]Error:[/bold red] {message}", end=end)

    def print_warning(self, message: str, end: str = "\n") -> None:
        self.error_console.print(f"[yellow]Warning:[/yellow] {message}", end=end)

    def print_note(self, message: str, error: Exception | None = None) -> None:
        if error:
            self.error_console.print(
                f"[yellow]Note:[/yellow] {message}: [red]{error}[/red]"
            )
        else:
            self.error_console.print(f"[yellow]Note:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/] {message}")

    def print_config_table(
        self, config_data: dict[str, Any], title: str = "kbcli-builder Configuration"
    ) -> None:
        table = Table(
            title=title,
            show_header=True,
            title_justify="center",
        )
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in config_data.items():
            table.add_row(str(key), str(value))
        self.console.print(table)

    def print_menu(self, menu: Menu) -> None:
        """Print one dropdown, marking the selected option."""
        table = Table(title=menu.placeholder, show_header=False, title_justify="left")
        table.add_column("", width=1)
        table.add_column("Option")
        for opt in menu.options:
            selected = menu.initial is not None and opt == menu.initial
            style = "bold green" if selected else ""
            if opt.synthetic:
                style = "dim italic"
            table.add_row("✓" if selected else "", opt.label, style=style)
        self.console.print(table)

    def print_message(self, message: Message) -> None:
        """Render a builder message in the terminal."""
        if isinstance(message, PlaintextMessage):
            self.print(message.text, markup=False)
            return

        for menu in message.menus:
            self.print_menu(menu)
        for section in message.sections:
            if isinstance(section, PreviewSection):
                self.console.print(
                    Panel(
                        Syntax(section.preview.text, "bash", word_wrap=True),
                        title="Command preview",
                        title_align="left",
                    )
                )
            elif isinstance(section, PlaintextSection):
                self.print(section.text, markup=False)
            elif isinstance(section, FilterInputSection) and section.initial:
                self.print_note(f"Filter: {section.initial}")


# Create global instance for easy import
console_manager = ConsoleManager()

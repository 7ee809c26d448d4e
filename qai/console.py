"""Console output formatting helpers.

Used by the administrative commands (history, tools, validate-api). The
query command prints plain text instead, since the shell widget captures
its stdout.
"""

from rich.console import Console


def get_console(stderr: bool = False) -> Console:
    """Create a rich console (stderr for diagnostics)."""
    return Console(stderr=stderr, highlight=False)


class ConsoleHelper:
    """Consistent console output formatting using Rich markup."""

    @staticmethod
    def success(console: Console, message: str) -> None:
        """Print success message with green checkmark."""
        console.print(f"[green]✓[/] {message}")

    @staticmethod
    def warning(console: Console, message: str) -> None:
        """Print warning message in yellow."""
        console.print(f"[yellow]{message}[/]")

    @staticmethod
    def dim(console: Console, message: str) -> None:
        console.print(f"[dim]{message}[/]")

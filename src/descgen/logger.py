"""Unified logging system for descgen with CLI output support."""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class DescgenLogger(logging.Logger):
    """
    Logger that combines Python logging with console formatting helpers.

    Provides the standard logging levels (debug, info, warning, error, critical)
    and semantic CLI output methods (success, hint, key_value, etc.) used by the
    generation commands to report what was written.
    """

    def __init__(self, name: str, level: int = logging.INFO) -> None:
        """
        Initialize the descgen logger.

        Args:
            name: Logger name
            level: Initial log level
        """
        super().__init__(name, level)
        self.console = Console(stderr=True)

        handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.addHandler(handler)

    def print(self, message: str) -> None:
        """Print a message to stderr, Rich markup allowed."""
        self.console.print(message)

    def colored(self, message: str, style: str = "bold cyan") -> None:
        self.print(f"[{style}]{message}[/{style}]")

    def success(self, message: str) -> None:
        """
        Print a success message in green with checkmark icon.

        Args:
            message: Message to display
        """
        self.print(f"[green]✓[/green] {message}")

    def hint(self, message: str) -> None:
        """Print a dimmed hint, e.g. how to enable descriptor set generation."""
        self.colored(message, "dim")

    def rule(self, title: str, style: str = "bold blue") -> None:
        """
        Print a horizontal rule with a title.

        Args:
            title: Title text for the rule
            style: Rich style string (default: "bold blue")
        """
        self.console.rule(f"[{style}]{title}")

    def key_value(self, key: str, value: Any, key_style: str = "dim") -> None:
        """
        Print a formatted key-value pair, e.g. "Known types: 12".

        Args:
            key: The key/label to display
            value: The value to display
            key_style: Style for the key (default: "dim")
        """
        self.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def get_logger(name: str = "descgen") -> DescgenLogger:
    """
    Get or create a descgen logger instance.

    Args:
        name: Logger name (default: "descgen")

    Returns:
        DescgenLogger instance
    """
    logging.setLoggerClass(DescgenLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(logging.Logger)

    return logger  # type: ignore[return-value]

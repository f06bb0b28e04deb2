"""Commands __init__ - exports all commands."""

from tradelens.cli.commands.metrics import equity_command, metrics_command

__all__ = ["equity_command", "metrics_command"]

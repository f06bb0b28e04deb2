"""tradelens CLI main entry point."""

import click

from tradelens import __version__
from tradelens.cli.commands import equity_command, metrics_command


@click.group()
@click.version_option(version=__version__)
def main():
    """tradelens - Trading performance analytics"""
    pass


# Register commands
main.add_command(metrics_command)
main.add_command(equity_command)


if __name__ == "__main__":
    main()

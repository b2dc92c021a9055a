"""pnltracker CLI main entry point."""

import click

from pnltracker import __version__
from pnltracker.cli.commands import report_command


@click.group()
@click.version_option(version=__version__)
def main():
    """pnltracker - FIFO Profit & Loss Tracker"""
    pass


# Register commands
main.add_command(report_command)


if __name__ == "__main__":
    main()

"""CLI UI components - table formatters."""

from pnltracker.cli.ui.formatters import create_positions_table, create_realized_table, create_summary_table

__all__ = [
    "create_positions_table",
    "create_realized_table",
    "create_summary_table",
]

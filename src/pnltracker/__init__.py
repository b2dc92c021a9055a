"""
pnltracker - Trade History Profit & Loss Tracker

Public API for FIFO cost-basis accounting over executed trades.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pnltracker")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]

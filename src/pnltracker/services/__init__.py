"""pnltracker services package.

Each service is independently testable and exposes a Protocol interface
so callers can inject alternative implementations.
"""

from pnltracker.services.portfolio import IPnLCalculator, PnLCalculatorService

__all__: list[str] = [
    "IPnLCalculator",
    "PnLCalculatorService",
]

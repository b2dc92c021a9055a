"""Errors raised when trade input cannot be accounted for."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TradeIssueKind(str, Enum):
    """Reason a trade was rejected."""

    NON_POSITIVE_AMOUNT = "non_positive_amount"
    NEGATIVE_PRICE = "negative_price"
    NEGATIVE_FEE = "negative_fee"
    UNSUPPORTED_SYMBOL = "unsupported_symbol"
    OVERSOLD = "oversold"


class TradeIssue(BaseModel):
    """Problem found with a single trade."""

    trade_id: str
    symbol: str
    kind: TradeIssueKind
    message: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.trade_id} ({self.symbol}): {self.message}"


class TradeValidationError(ValueError):
    """
    Raised when one or more trades cannot be accounted for.

    Attributes:
        issues: Every offending trade with its issue kind
    """

    def __init__(self, issues: list[TradeIssue]) -> None:
        self.issues = list(issues)
        if len(self.issues) == 1:
            message = f"Invalid trade {self.issues[0]}"
        else:
            details = "; ".join(str(issue) for issue in self.issues)
            message = f"{len(self.issues)} invalid trades: {details}"
        super().__init__(message)

    @property
    def trade_ids(self) -> list[str]:
        """Ids of the offending trades."""
        return [issue.trade_id for issue in self.issues]


class InsufficientInventoryError(TradeValidationError):
    """Raised when a sell exceeds open inventory under the reject policy."""

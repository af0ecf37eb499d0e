"""Pydantic schema exports."""

from .auth import SignOutResponse, UserOut
from .holdings import HoldingSchema
from .portfolio import CurrencyChangeRequest, DisplayRowSchema, PortfolioResponse, PortfolioTotalsSchema
from .tickers import TickerCheckSchema

__all__ = [
    "CurrencyChangeRequest",
    "DisplayRowSchema",
    "HoldingSchema",
    "PortfolioResponse",
    "PortfolioTotalsSchema",
    "SignOutResponse",
    "TickerCheckSchema",
    "UserOut",
]

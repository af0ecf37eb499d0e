"""Core package for the portfolio valuation engine."""

from .fx import FxQuote, UnsupportedCurrencyError
from .models import DisplayRow, Holding, PortfolioTotals, PortfolioValuation
from .valuation import unique_tickers, value_portfolio

__all__ = [
    "DisplayRow",
    "FxQuote",
    "Holding",
    "PortfolioTotals",
    "PortfolioValuation",
    "UnsupportedCurrencyError",
    "unique_tickers",
    "value_portfolio",
]

"""FX conversion helpers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .models import CANONICAL_CURRENCY

INPUT_CURRENCIES = ("USD", "EUR")
DISPLAY_CURRENCIES = ("USD", "EUR", "GBP")
DEFAULT_FALLBACK_RATE = 1.0


class UnsupportedCurrencyError(ValueError):
    """Raised when a currency is outside the supported set."""


def pair_key(base: str, quote: str) -> str:
    return f"{base.upper()}{quote.upper()}"


def fx_ticker(base: str, quote: str) -> str:
    """Return the synthetic market-data ticker for a currency pair."""

    return f"C:{pair_key(base, quote)}"


@dataclass(frozen=True)
class FxQuote:
    """A conversion rate from ``base`` to ``quote``.

    ``fallback`` is true when no market rate was available and the configured
    fallback constant was used instead.
    """

    base: str
    quote: str
    rate: float
    fallback: bool = False


def quote_or_fallback(
    base: str,
    quote: str,
    rate: Optional[float],
    fallbacks: Mapping[str, float] | None = None,
) -> FxQuote:
    """Build an :class:`FxQuote` from a fetched rate, falling back when absent."""

    base, quote = base.upper(), quote.upper()
    if base == quote:
        return FxQuote(base, quote, 1.0)
    if rate is not None:
        return FxQuote(base, quote, rate)
    table: Dict[str, float] = dict(fallbacks or {})
    return FxQuote(base, quote, table.get(pair_key(base, quote), DEFAULT_FALLBACK_RATE), fallback=True)


def to_canonical(price: float, currency: str, quote: FxQuote | None = None) -> float:
    """Convert an entered purchase price into the canonical currency."""

    currency = currency.upper()
    if currency == CANONICAL_CURRENCY:
        return price
    if quote is None or quote.base != currency or quote.quote != CANONICAL_CURRENCY:
        raise UnsupportedCurrencyError(
            f"Missing {currency}->{CANONICAL_CURRENCY} rate for price conversion"
        )
    return price * quote.rate


def ensure_supported(currency: str, supported: tuple[str, ...] | list[str]) -> str:
    normalized = currency.strip().upper()
    if normalized not in {c.upper() for c in supported}:
        raise UnsupportedCurrencyError(f"Unsupported currency: {currency}")
    return normalized

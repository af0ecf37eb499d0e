"""Add and edit flows for holdings.

The add flow owns a :class:`TickerValidator`; submission is refused until the
validator has confirmed the ticker being submitted. Prices entered in EUR are
converted to USD before they reach the store.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Awaitable, Callable, Mapping, Sequence

from pydantic import BaseModel, Field, field_validator

from app.providers.polygon import PolygonClient
from app.services.holdings import HoldingsStore, NewHolding
from app.services.ticker_check import TickerValidator
from portfolio_analyzer.fx import INPUT_CURRENCIES, ensure_supported, to_canonical
from portfolio_analyzer.models import CANONICAL_CURRENCY, Holding

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Holding], Awaitable[None]]


class TickerNotValidatedError(ValueError):
    """Raised when a submission is attempted before the ticker validated."""

    def __init__(self, message: str = "Please validate the ticker before submitting.") -> None:
        super().__init__(message)


class NotAuthenticatedError(PermissionError):
    def __init__(self, message: str = "You must be logged in to add a stock.") -> None:
        super().__init__(message)


class AddHoldingForm(BaseModel):
    ticker: str = Field(..., min_length=1, description="Ticker is required.", examples=["AAPL"])
    quantity: float = Field(default=1, ge=1, description="Must be at least 1 share.")
    purchase_price: float = Field(default=100.0, ge=0.01, description="Must be a valid price.")
    purchase_date: date = Field(default_factory=date.today)
    purchase_currency: str = Field(default="USD", examples=["EUR"])

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not normalized:
            raise ValueError("Ticker is required.")
        return normalized

    @field_validator("purchase_currency")
    @classmethod
    def _known_currency(cls, value: str) -> str:
        return ensure_supported(value, INPUT_CURRENCIES)


class EditHoldingForm(BaseModel):
    """Edits apply to the stored USD price directly; no conversion happens."""

    quantity: float | None = Field(default=None, gt=0)
    purchase_price: float | None = Field(default=None, ge=0)
    purchase_date: date | None = None

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_none=True)


class AddHoldingFlow:
    """Drive one add-holding dialog: validate, convert, insert, notify."""

    def __init__(
        self,
        market: PolygonClient,
        *,
        settle_seconds: float = 1.0,
        fx_fallbacks: Mapping[str, float] | None = None,
        input_currencies: Sequence[str] = INPUT_CURRENCIES,
    ) -> None:
        self._market = market
        self._input_currencies = tuple(input_currencies)
        self._fx_fallbacks = dict(fx_fallbacks or {})
        self.validator = TickerValidator(market.lookup_ticker, settle_seconds=settle_seconds)
        self._callbacks: list[SuccessCallback] = []

    def on_success(self, callback: SuccessCallback) -> None:
        self._callbacks.append(callback)

    def ticker_changed(self, value: str) -> None:
        self.validator.schedule(value)

    async def check_ticker(self, value: str) -> bool:
        return await self.validator.check_now(value)

    async def canonical_price(self, price: float, currency: str) -> float:
        quote = await self._market.resolve_fx_rate(currency, CANONICAL_CURRENCY, self._fx_fallbacks)
        return to_canonical(price, currency, quote)

    async def submit(self, form: AddHoldingForm, user_id: str | None, store: HoldingsStore) -> Holding:
        if not self.validator.is_valid_for(form.ticker):
            raise TickerNotValidatedError()
        if not user_id:
            raise NotAuthenticatedError()
        currency = ensure_supported(form.purchase_currency, self._input_currencies)

        usd_price = await self.canonical_price(form.purchase_price, currency)
        holding = await store.insert(
            user_id,
            NewHolding(
                ticker=form.ticker,
                quantity=form.quantity,
                purchase_price_usd=usd_price,
                purchase_date=form.purchase_date,
            ),
        )
        self.validator.reset()
        for callback in self._callbacks:
            await callback(holding)
        return holding


__all__ = [
    "AddHoldingFlow",
    "AddHoldingForm",
    "EditHoldingForm",
    "NotAuthenticatedError",
    "TickerNotValidatedError",
]

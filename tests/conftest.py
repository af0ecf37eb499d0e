import asyncio
import inspect
import pathlib
import sys
from typing import Any

import httpx
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.providers.polygon import PolygonClient  # noqa: E402
from app.services.identity import User  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            argnames = pyfuncitem._fixtureinfo.argnames
            kwargs = {name: pyfuncitem.funcargs[name] for name in argnames}
            loop.run_until_complete(test_function(**kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


class StubResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class StubPolygonHTTP:
    """Answers Polygon ticker-details and previous-close requests from dicts."""

    def __init__(
        self,
        tickers: dict[str, str] | None = None,
        closes: dict[str, float] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.tickers = dict(tickers or {})
        self.closes = dict(closes or {})
        self.failing = set(failing or ())
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    async def get(self, url: str, params: dict[str, Any] | None = None, timeout: float | None = None, **_: Any):
        self.calls.append((url, dict(params or {})))
        if "/v3/reference/tickers/" in url:
            symbol = url.rsplit("/", 1)[-1]
            if symbol in self.failing:
                raise httpx.ConnectError("network down")
            if symbol in self.tickers:
                return StubResponse({"status": "OK", "results": {"ticker": symbol, "name": self.tickers[symbol]}})
            return StubResponse({"status": "NOT_FOUND", "message": "Ticker not found."}, status_code=404)
        if "/v2/aggs/ticker/" in url:
            symbol = url.split("/v2/aggs/ticker/", 1)[1].split("/", 1)[0]
            if symbol in self.failing:
                raise httpx.ConnectError("network down")
            if symbol in self.closes:
                return StubResponse({"status": "OK", "results": [{"T": symbol, "c": self.closes[symbol]}]})
            return StubResponse({"status": "OK", "resultsCount": 0, "results": []})
        return StubResponse({"status": "ERROR"}, status_code=404)


class FakeIdentity:
    """Accepts tokens of the form ``token-<user id>``."""

    def __init__(self) -> None:
        self.signed_out: list[str] = []

    async def get_current_user(self, access_token: str | None) -> User | None:
        if not access_token or not access_token.startswith("token-"):
            return None
        user_id = access_token.removeprefix("token-")
        return User(id=user_id, email=f"{user_id}@example.com")

    async def sign_out(self, access_token: str) -> bool:
        self.signed_out.append(access_token)
        return True


@pytest.fixture
def polygon_http() -> StubPolygonHTTP:
    return StubPolygonHTTP(
        tickers={"AAPL": "Apple Inc.", "MSFT": "Microsoft Corp"},
        closes={"AAPL": 150.0, "MSFT": 400.0, "C:EURUSD": 1.1, "C:USDEUR": 0.9, "C:USDGBP": 0.8},
    )


@pytest.fixture
def polygon(polygon_http: StubPolygonHTTP) -> PolygonClient:
    return PolygonClient(api_key="test", client=polygon_http)


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()

"""
Currency rates against a mocked Frankfurter API (httpx.MockTransport, no network).
"""
from decimal import Decimal

import httpx
import pytest

from app.services import currency

REAL_CLIENT = httpx.AsyncClient


@pytest.fixture(autouse=True)
def _fresh_cache():
    currency.clear_cache()
    yield
    currency.clear_cache()


def _mock(monkeypatch, handler):
    calls = []

    def recording(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return handler(request)

    def client(**kwargs):
        return REAL_CLIENT(transport=httpx.MockTransport(recording), **kwargs)

    monkeypatch.setattr(currency.httpx, "AsyncClient", client)
    return calls


def _rates_handler(table):
    def handler(request):
        to = request.url.params["to"]
        return httpx.Response(200, json={"base": request.url.params["from"], "rates": {to: table[to]}})
    return handler


@pytest.mark.asyncio
async def test_same_currency_needs_no_request(monkeypatch):
    calls = _mock(monkeypatch, _rates_handler({}))
    assert await currency.get_conversion_rate("usd", "USD") == Decimal(1)
    assert await currency.get_conversion_rate(None, "USD") == Decimal(1)
    assert calls == []


@pytest.mark.asyncio
async def test_rate_fetched_then_cached(monkeypatch):
    calls = _mock(monkeypatch, _rates_handler({"EUR": 0.92}))
    assert await currency.get_conversion_rate("USD", "EUR") == Decimal("0.92")
    assert await currency.get_conversion_rate("USD", "EUR") == Decimal("0.92")
    assert len(calls) == 1
    assert calls[0].url.path == "/latest"


@pytest.mark.asyncio
async def test_http_error_reads_as_one(monkeypatch):
    _mock(monkeypatch, lambda request: httpx.Response(500))
    assert await currency.get_conversion_rate("USD", "HUF") == Decimal(1)


@pytest.mark.asyncio
async def test_missing_rate_reads_as_one_and_is_not_cached(monkeypatch):
    calls = _mock(monkeypatch, lambda request: httpx.Response(200, json={"rates": {}}))
    assert await currency.get_conversion_rate("USD", "GBP") == Decimal(1)
    await currency.get_conversion_rate("USD", "GBP")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_get_rates_always_includes_usd_and_target(monkeypatch):
    _mock(monkeypatch, _rates_handler({"EUR": 2}))
    rates = await currency.get_rates(["GBP", None], "eur")
    assert rates == {"GBP": Decimal(2), "USD": Decimal(2), "EUR": Decimal(1)}

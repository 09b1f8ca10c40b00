"""
Tiingo client against a mocked transport: search fallback, quote parsing,
history parsing and the failure modes that read as empty.
"""
from datetime import date
from decimal import Decimal

import httpx
import pytest

from app.core.config import settings
from app.services import market_data

REAL_CLIENT = httpx.AsyncClient


@pytest.fixture(autouse=True)
def _configured(monkeypatch):
    monkeypatch.setattr(settings, "tiingo_api_key", "test-token")
    market_data.clear_caches()
    yield
    market_data.clear_caches()


def _mock(monkeypatch, routes):
    """routes: path -> Response or callable(request) -> Response."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        return route(request) if callable(route) else route

    def client(**kwargs):
        return REAL_CLIENT(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(market_data.httpx, "AsyncClient", client)
    return calls


# ── search ───────────────────────────────────────────────────────────────────

class TestSearch:
    @pytest.mark.asyncio
    async def test_short_query_skipped(self, monkeypatch):
        calls = _mock(monkeypatch, {})
        assert await market_data.search_stocks("a") == []
        assert calls == []

    @pytest.mark.asyncio
    async def test_results_parsed(self, monkeypatch):
        _mock(monkeypatch, {
            "/tiingo/utilities/search": httpx.Response(200, json=[
                {"ticker": "aapl", "name": "Apple Inc", "assetType": "Stock", "countryCode": "US"},
                {"ticker": None, "name": "junk"},
            ]),
        })
        results = await market_data.search_stocks("apple")
        assert [(r.symbol, r.name) for r in results] == [("AAPL", "Apple Inc")]

    @pytest.mark.asyncio
    async def test_direct_lookup_fallback(self, monkeypatch):
        _mock(monkeypatch, {
            "/tiingo/utilities/search": httpx.Response(200, json=[]),
            "/iex/": httpx.Response(200, json=[{"ticker": "VWRL", "last": 101.5, "prevClose": 100}]),
        })
        results = await market_data.search_stocks("vwrl")
        assert len(results) == 1
        assert results[0].symbol == "VWRL"
        assert results[0].name == "Direct Lookup"

    @pytest.mark.asyncio
    async def test_cached_by_lowercase_query(self, monkeypatch):
        calls = _mock(monkeypatch, {
            "/tiingo/utilities/search": httpx.Response(200, json=[{"ticker": "MSFT", "name": "Microsoft"}]),
        })
        await market_data.search_stocks("MSFT")
        await market_data.search_stocks("msft")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_no_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "tiingo_api_key", "")
        assert await market_data.search_stocks("apple") == []


# ── quotes ───────────────────────────────────────────────────────────────────

class TestQuote:
    @pytest.mark.asyncio
    async def test_change_from_previous_close(self, monkeypatch):
        _mock(monkeypatch, {"/iex/": httpx.Response(200, json=[{"last": 110, "prevClose": 100}])})
        quote = await market_data.get_stock_price("aapl")
        assert quote.symbol == "AAPL"
        assert quote.price == Decimal(110)
        assert quote.change == Decimal(10)
        assert quote.change_percent == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_falls_back_to_previous_close(self, monkeypatch):
        _mock(monkeypatch, {"/iex/": httpx.Response(200, json=[{"last": None, "tngoLast": None, "prevClose": 99}])})
        quote = await market_data.get_stock_price("AAPL")
        assert quote.price == Decimal(99)
        assert quote.change == 0

    @pytest.mark.asyncio
    async def test_empty_payload_is_zero_quote(self, monkeypatch):
        _mock(monkeypatch, {"/iex/": httpx.Response(200, json=[])})
        quote = await market_data.get_stock_price("NOPE")
        assert quote.price == 0

    @pytest.mark.asyncio
    async def test_http_failure_is_none(self, monkeypatch):
        _mock(monkeypatch, {"/iex/": httpx.Response(503)})
        assert await market_data.get_stock_price("AAPL") is None


# ── history ──────────────────────────────────────────────────────────────────

class TestHistory:
    @pytest.mark.asyncio
    async def test_prices_and_dividends(self, monkeypatch):
        _mock(monkeypatch, {
            "/tiingo/daily/AAPL/prices": httpx.Response(200, json=[
                {"date": "2024-05-09T00:00:00.000Z", "adjClose": 184.57, "adjVolume": 48983000, "divCash": 0.0},
                {"date": "2024-05-10T00:00:00.000Z", "adjClose": 183.05, "adjVolume": 50759500, "divCash": 0.25},
            ]),
        })
        history = await market_data.get_historical_data("aapl", date(2024, 5, 1))
        assert [p.date for p in history.prices] == [date(2024, 5, 9), date(2024, 5, 10)]
        assert history.prices[0].close == Decimal("184.57")
        assert history.dividends == [market_data.Dividend(date=date(2024, 5, 10), amount=Decimal("0.25"))]

    @pytest.mark.asyncio
    async def test_api_note_is_empty(self, monkeypatch):
        _mock(monkeypatch, {
            "/tiingo/daily/ZZZZ/prices": httpx.Response(200, json={"detail": "Error: Ticker 'ZZZZ' not found"}),
        })
        history = await market_data.get_historical_data("ZZZZ", date(2024, 1, 1))
        assert history.prices == []

    @pytest.mark.asyncio
    async def test_non_200_is_empty(self, monkeypatch):
        _mock(monkeypatch, {})
        history = await market_data.get_historical_data("AAPL", date(2024, 1, 1))
        assert history.prices == [] and history.dividends == []

    @pytest.mark.asyncio
    async def test_price_histories_by_symbol(self, monkeypatch):
        _mock(monkeypatch, {
            "/tiingo/daily/AAPL/prices": httpx.Response(200, json=[{"date": "2024-01-02", "adjClose": 1}]),
        })
        histories = await market_data.get_price_histories(["aapl", "AAPL", "MSFT", ""], date(2024, 1, 1))
        assert set(histories) == {"AAPL", "MSFT"}
        assert len(histories["AAPL"]) == 1
        assert histories["MSFT"] == []

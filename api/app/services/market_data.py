"""Stock / ETF search, quotes and daily history from Tiingo.

Prices are quoted in USD. Responses are cached in-process: searches and
histories for an hour, quotes for five minutes. Tiingo reports API-level
problems (bad ticker, quota) as a JSON object with a "detail" field, which is
treated as an empty result.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

import httpx

from app.core.cache import TTLCache
from app.core.config import settings

logger = logging.getLogger(__name__)

SEARCH_CACHE_TTL = 60 * 60
QUOTE_CACHE_TTL = 5 * 60
HISTORY_CACHE_TTL = 60 * 60
MIN_SEARCH_LENGTH = 2

_search_cache = TTLCache(SEARCH_CACHE_TTL)
_quote_cache = TTLCache(QUOTE_CACHE_TTL)
_history_cache = TTLCache(HISTORY_CACHE_TTL)


@dataclass
class SearchResult:
    symbol: str
    name: str
    type: str
    region: str
    currency: str


@dataclass
class Quote:
    symbol: str
    price: Decimal
    change: Decimal
    change_percent: Decimal


@dataclass
class PricePoint:
    date: date
    close: Decimal
    volume: int = 0


@dataclass
class Dividend:
    date: date
    amount: Decimal


@dataclass
class History:
    prices: list[PricePoint]
    dividends: list[Dividend]


def _dec(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal(0)


def _has_api_note(payload) -> bool:
    return isinstance(payload, dict) and "detail" in payload


async def _get(path: str, params: dict) -> httpx.Response:
    async with httpx.AsyncClient(base_url=settings.tiingo_base_url, timeout=15) as client:
        return await client.get(path, params={**params, "token": settings.tiingo_api_key})


# ─── Search ────────────────────────────────────────────────────────────────────

async def search_stocks(keywords: str) -> list[SearchResult]:
    keywords = (keywords or "").strip()
    if len(keywords) < MIN_SEARCH_LENGTH:
        return []
    if not settings.tiingo_api_key:
        logger.warning("Stock search skipped: TIINGO_API_KEY not configured")
        return []

    key = keywords.lower()
    cached = _search_cache.get(key)
    if cached is not None:
        return cached

    results: list[SearchResult] = []
    try:
        resp = await _get("/tiingo/utilities/search", {"query": keywords, "asset_types": "stock,etf"})
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Stock search for %r failed: %s", keywords, exc)
        return []

    if isinstance(payload, list):
        results = [
            SearchResult(
                symbol=(item.get("ticker") or "").upper(),
                name=item.get("name") or "",
                type=item.get("assetType") or "Stock",
                region=item.get("countryCode") or "US",
                currency="USD",
            )
            for item in payload
            if item.get("ticker")
        ]

    if not results:
        # Unknown to search but maybe a valid ticker: try it directly
        symbol = keywords.upper()
        quote = await get_stock_price(symbol)
        if quote is not None and quote.price > 0:
            results = [SearchResult(symbol=symbol, name="Direct Lookup", type="Stock", region="US", currency="USD")]

    _search_cache.set(key, results)
    return results


# ─── Quotes ────────────────────────────────────────────────────────────────────

async def get_stock_price(ticker: str) -> Quote | None:
    """Latest quote; zeros when Tiingo has no data, None when the request fails."""
    symbol = (ticker or "").strip().upper()
    if not symbol:
        return None
    if not settings.tiingo_api_key:
        logger.warning("Quote for %s skipped: TIINGO_API_KEY not configured", symbol)
        return None

    cached = _quote_cache.get(symbol)
    if cached is not None:
        return cached

    try:
        resp = await _get("/iex/", {"tickers": symbol})
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Quote fetch for %s failed: %s", symbol, exc)
        return None

    if not payload or _has_api_note(payload):
        quote = Quote(symbol=symbol, price=Decimal(0), change=Decimal(0), change_percent=Decimal(0))
    else:
        data = payload[0]
        price = _dec(data.get("last") or data.get("tngoLast") or data.get("prevClose"))
        prev_close = _dec(data.get("prevClose"))
        change = price - prev_close if prev_close else Decimal(0)
        percent = (change / prev_close * 100) if prev_close else Decimal(0)
        quote = Quote(symbol=symbol, price=price, change=change, change_percent=percent.quantize(Decimal("0.01")))

    _quote_cache.set(symbol, quote)
    return quote


# ─── Daily history ─────────────────────────────────────────────────────────────

async def get_historical_data(ticker: str, start: date) -> History | None:
    """Adjusted daily closes and cash dividends since `start`.

    API-level errors give an empty history; network failures give None.
    """
    symbol = (ticker or "").strip().upper()
    if not symbol or not settings.tiingo_api_key:
        return History(prices=[], dividends=[])

    key = f"{symbol}:{start.isoformat()}"
    cached = _history_cache.get(key)
    if cached is not None:
        return cached

    try:
        resp = await _get(f"/tiingo/daily/{symbol}/prices", {"startDate": start.isoformat()})
    except httpx.HTTPError as exc:
        logger.error("History fetch for %s failed: %s", symbol, exc)
        return None

    if resp.status_code != 200:
        logger.warning("History for %s returned %d: %s", symbol, resp.status_code, resp.text[:200])
        return History(prices=[], dividends=[])
    try:
        payload = resp.json()
    except ValueError as exc:
        logger.error("History for %s is not JSON: %s", symbol, exc)
        return History(prices=[], dividends=[])
    if _has_api_note(payload) or not isinstance(payload, list):
        logger.warning("History for %s: %s", symbol, payload)
        return History(prices=[], dividends=[])

    prices: list[PricePoint] = []
    dividends: list[Dividend] = []
    for row in payload:
        day = date.fromisoformat(row["date"][:10])
        prices.append(PricePoint(date=day, close=_dec(row.get("adjClose")), volume=int(row.get("adjVolume") or 0)))
        div = _dec(row.get("divCash"))
        if div > 0:
            dividends.append(Dividend(date=day, amount=div))

    history = History(prices=prices, dividends=dividends)
    _history_cache.set(key, history)
    return history


async def get_price_histories(tickers: Iterable[str], start: date) -> dict[str, list[PricePoint]]:
    """Daily closes for every distinct ticker, fetched concurrently; failures read as empty."""
    symbols = sorted({t.upper() for t in tickers if t})
    results = await asyncio.gather(*(get_historical_data(s, start) for s in symbols))
    return {s: (h.prices if h else []) for s, h in zip(symbols, results)}


def clear_caches() -> None:
    _search_cache.clear()
    _quote_cache.clear()
    _history_cache.clear()

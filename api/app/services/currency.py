"""Currency conversion rates from the Frankfurter API.

Rates are cached in-process for an hour. Any failure (network, HTTP status,
unexpected payload) is logged and reads as 1:1 so pages still render.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Iterable

import httpx

from app.core.cache import TTLCache
from app.core.config import settings

logger = logging.getLogger(__name__)

CURRENCY_CACHE_TTL = 60 * 60
SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP", "HUF")

_rate_cache = TTLCache(CURRENCY_CACHE_TTL)


async def get_conversion_rate(from_currency: str | None, to_currency: str | None) -> Decimal:
    """Rate to multiply an amount in `from_currency` by to get `to_currency`."""
    if not from_currency or not to_currency:
        return Decimal(1)
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    if from_currency == to_currency:
        return Decimal(1)

    key = f"{from_currency}-{to_currency}"
    cached = _rate_cache.get(key)
    if cached is not None:
        return cached

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(
                f"{settings.frankfurter_base_url}/latest",
                params={"from": from_currency, "to": to_currency},
            )
            resp.raise_for_status()
            raw = resp.json().get("rates", {}).get(to_currency)
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Rate fetch %s failed: %s", key, exc)
        return Decimal(1)

    if raw is None:
        logger.error("Rate %s missing from provider response", key)
        return Decimal(1)

    rate = Decimal(str(raw))
    _rate_cache.set(key, rate)
    return rate


async def get_rates(currencies: Iterable[str | None], target: str) -> dict[str, Decimal]:
    """Rates from every distinct currency (plus USD) into `target`, fetched concurrently."""
    target = target.upper()
    wanted = sorted({(c or "USD").upper() for c in currencies} | {"USD"})
    results = await asyncio.gather(*(get_conversion_rate(c, target) for c in wanted))
    rates = dict(zip(wanted, results))
    rates[target] = Decimal(1)
    return rates


def clear_cache() -> None:
    _rate_cache.clear()

"""Stock / ETF positions, plus ticker search and live quotes."""

import asyncio
import uuid
from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.investment import Investment, InvestmentTransaction
from app.models.user import User
from app.schemas.investment import (
    InvestmentCreate,
    InvestmentDetailResponse,
    InvestmentResponse,
    InvestmentTransactionIn,
    InvestmentUpdate,
    PositionResponse,
    QuoteResponse,
    SearchResultResponse,
)
from app.services.currency import get_rates
from app.services.market_data import get_historical_data, get_stock_price, search_stocks
from app.services.queries import get_or_404, owned
from app.services.valuation import (
    dividend_payouts,
    investment_summary,
    position_history,
    rate_for,
    total_dividends,
)

router = APIRouter(prefix="/investments", tags=["investments"])


async def _load(db: AsyncSession, user: User, investment_id: uuid.UUID) -> Investment:
    investment = await get_or_404(db, Investment, investment_id, "Investment")
    authorize(user, "investment", "write", investment)
    return investment


async def _detail(investment: Investment, user: User) -> InvestmentDetailResponse:
    """Position at the live quote, plus price history, monthly value and dividends since the first buy."""
    today = date.today()
    first_day = min((t.date for t in investment.transactions), default=today)
    quote, rates, history = await asyncio.gather(
        get_stock_price(investment.ticker),
        get_rates([t.currency for t in investment.transactions], user.currency),
        get_historical_data(investment.ticker, first_day),
    )
    prices = history.prices if history else []
    payouts = dividend_payouts(investment, history.dividends if history else [])

    summary = investment_summary(investment, quote.price if quote else None, rates)
    base = InvestmentResponse.model_validate(investment)
    return InvestmentDetailResponse(
        **base.model_dump(),
        position=PositionResponse(**asdict(summary), currency=user.currency),
        price_history=[asdict(p) for p in prices],
        value_history=[asdict(p) for p in position_history(investment, prices, rates, today)],
        dividends=[asdict(p) for p in payouts],
        total_dividends=total_dividends(payouts, rate_for(rates, "USD")),
    )


# ─── Market data ───────────────────────────────────────────────────────────────

@router.get("/search", response_model=list[SearchResultResponse])
async def search(
    q: str = Query(min_length=1, max_length=50),
    user: User = Depends(get_current_user),
):
    return await search_stocks(q)


@router.get("/quote/{ticker}", response_model=QuoteResponse)
async def quote(ticker: str, user: User = Depends(get_current_user)):
    result = await get_stock_price(ticker)
    if result is None:
        raise HTTPException(status_code=502, detail="Couldn't fetch a quote right now. Please try again.")
    return result


# ─── Positions ─────────────────────────────────────────────────────────────────

@router.get("/", response_model=list[InvestmentResponse])
async def list_investments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await owned(db, Investment, user)


@router.post("/", response_model=InvestmentDetailResponse, status_code=201)
async def create_investment(
    payload: InvestmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    investment = Investment(user_id=user.id, ticker=payload.ticker, name=payload.name)
    investment.transactions = [InvestmentTransaction(**t.model_dump()) for t in payload.transactions]
    db.add(investment)
    await db.flush()
    await db.refresh(investment)
    return await _detail(investment, user)


@router.get("/{investment_id}", response_model=InvestmentDetailResponse)
async def get_investment(
    investment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    investment = await get_or_404(db, Investment, investment_id, "Investment")
    authorize(user, "investment", "read", investment)
    return await _detail(investment, user)


@router.patch("/{investment_id}", response_model=InvestmentResponse)
async def update_investment(
    investment_id: uuid.UUID,
    payload: InvestmentUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    investment = await _load(db, user, investment_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(investment, field, value)
    await db.flush()
    await db.refresh(investment)
    return investment


@router.delete("/{investment_id}", status_code=204)
async def delete_investment(
    investment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.delete(await _load(db, user, investment_id))


# ─── Buy / sell transactions ───────────────────────────────────────────────────

@router.post("/{investment_id}/transactions", response_model=InvestmentResponse, status_code=201)
async def add_transaction(
    investment_id: uuid.UUID,
    payload: InvestmentTransactionIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    investment = await _load(db, user, investment_id)
    investment.transactions.append(InvestmentTransaction(**payload.model_dump()))
    await db.flush()
    await db.refresh(investment)
    return investment


@router.put("/{investment_id}/transactions/{entry_id}", response_model=InvestmentResponse)
async def replace_transaction(
    investment_id: uuid.UUID,
    entry_id: uuid.UUID,
    payload: InvestmentTransactionIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    investment = await _load(db, user, investment_id)
    entry = next((t for t in investment.transactions if t.id == entry_id), None)
    if entry is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    for field, value in payload.model_dump().items():
        setattr(entry, field, value)
    await db.flush()
    await db.refresh(investment)
    return investment


@router.delete("/{investment_id}/transactions/{entry_id}", response_model=InvestmentResponse)
async def delete_transaction(
    investment_id: uuid.UUID,
    entry_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    investment = await _load(db, user, investment_id)
    if not any(t.id == entry_id for t in investment.transactions):
        raise HTTPException(status_code=404, detail="Transaction not found")
    investment.transactions = [t for t in investment.transactions if t.id != entry_id]
    await db.flush()
    await db.refresh(investment)
    return investment

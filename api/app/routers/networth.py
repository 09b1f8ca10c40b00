"""Net worth: point-in-time breakdown, monthly history and growth projection."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.networth import (
    HistoryPoint,
    HistoryResponse,
    NetWorthResponse,
    ProjectionPointResponse,
    ProjectionRequest,
    ProjectionResponse,
    YearRow,
)
from app.services.categories import asset_type_icons
from app.services.periods import month_end, same_month
from app.services.projection import default_monthly_contribution, project
from app.services.queries import custom_categories, load_portfolio
from app.services.valuation import (
    asset_breakdown,
    combined_holdings,
    estimate_target_date,
    format_liability_type,
    history_start,
    liability_breakdown,
    monthly_contribution_rate,
    net_worth_at,
    net_worth_history,
)

router = APIRouter(prefix="/networth", tags=["networth"])


def _history(portfolio, today: date, months: int | None = None) -> list[HistoryPoint]:
    start = history_start(portfolio, today)
    if start is None:
        return []
    points = net_worth_history(portfolio, start, today)
    if months:
        points = points[-months:]
    return [HistoryPoint(month=m, net_worth=v) for m, v in points]


@router.get("/", response_model=NetWorthResponse)
async def get_net_worth(
    year: int | None = Query(default=None, ge=1970, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Breakdown at the end of the selected month (today for the current month)."""
    today = date.today()
    selected = date(year or today.year, month or today.month, 1)
    if selected > today:
        raise HTTPException(status_code=422, detail="Can't show net worth for a future month")
    is_current = same_month(selected, today)
    as_of = today if is_current else month_end(selected)

    portfolio = await load_portfolio(db, user, today)
    breakdown = net_worth_at(portfolio, as_of)
    holdings = combined_holdings(portfolio, as_of, asset_type_icons(await custom_categories(db, user)))

    response = NetWorthResponse(
        as_of=as_of,
        currency=user.currency,
        total_assets=breakdown.total_assets,
        assets=breakdown.assets,
        savings=breakdown.savings,
        investments=breakdown.investments,
        liabilities=breakdown.liabilities,
        net_worth=breakdown.net_worth,
        holdings=sorted(holdings, key=lambda h: h["value"], reverse=True),
        liability_rows=[
            {"id": l.id, "name": l.name, "type": format_liability_type(l.type), "balance": l.current_balance}
            for l in portfolio.liabilities
        ],
        asset_breakdown=asset_breakdown(holdings),
        liability_breakdown=liability_breakdown(portfolio.liabilities),
    )

    target = user.net_worth_target
    if target and target > 0:
        response.target = target
        progress = max(breakdown.net_worth, Decimal(0)) / target * 100
        response.target_progress_percent = min(progress, Decimal(100)).quantize(Decimal("0.01"))
        if is_current:
            rate = monthly_contribution_rate(portfolio, today)
            response.monthly_contribution_rate = rate.quantize(Decimal("0.01"))
            response.estimated_target_date = estimate_target_date(breakdown.net_worth, target, rate, today)
    return response


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    months: int | None = Query(default=None, ge=1, le=60),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Month-end net worth from the earliest entry (at most five years back) through today."""
    today = date.today()
    portfolio = await load_portfolio(db, user, today)
    return HistoryResponse(currency=user.currency, points=_history(portfolio, today, months))


@router.post("/projection", response_model=ProjectionResponse)
async def get_projection(
    payload: ProjectionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    today = date.today()
    portfolio = await load_portfolio(db, user, today)
    current = net_worth_at(portfolio, today).net_worth

    contribution = payload.monthly_contribution
    if contribution is None:
        trailing = monthly_contribution_rate(portfolio, today, include_investments=False)
        contribution = default_monthly_contribution(user.default_monthly_contribution, trailing)

    try:
        result = project(current, payload.years, payload.annual_growth_rate, contribution, today)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return ProjectionResponse(
        currency=user.currency,
        current_net_worth=current,
        monthly_contribution=contribution,
        final_value=result.final_value,
        total_contributions=result.total_contributions,
        total_growth=result.total_growth,
        points=[
            ProjectionPointResponse(
                date=p.date,
                initial_capital=p.initial_capital,
                contributions=p.contributions,
                growth=p.growth,
                total=p.total,
            )
            for p in result.points
        ],
        yearly=[YearRow(year=y, value=v) for y, v in result.yearly],
        history=_history(portfolio, today),
    )

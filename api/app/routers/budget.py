"""Monthly budget view, quick amount edits and period comparison."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.rules import authorize
from app.models.asset import Asset
from app.models.transaction import AmountChange, Transaction
from app.models.user import User
from app.schemas.budget import (
    CashflowMonthResponse,
    CashflowResponse,
    CompareResponse,
    ExpenseGroupResponse,
    Grouping,
    MonthlySummaryResponse,
    PeriodTotals,
    QuickEdit,
)
from app.schemas.transaction import TransactionResponse
from app.services.budget import (
    amount_for_date,
    cashflow,
    compare_periods,
    monthly_summary,
    period_metrics,
    update_from_month,
    update_this_month_only,
)
from app.services.periods import month_end, month_start
from app.services.queries import (
    category_lookup,
    get_or_404,
    load_household,
    my_households,
    owned,
    visible_goals,
    visible_transactions,
)

router = APIRouter(prefix="/budget", tags=["budget"])

CASHFLOW_MAX_MONTHS = 60


@router.get("/summary", response_model=MonthlySummaryResponse)
async def get_summary(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    grouping: Grouping = Grouping.category,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    today = date.today()
    selected = date(year or today.year, month or today.month, 1)

    households = await my_households(db, user)
    household_ids = [h.id for h in households]
    summary = monthly_summary(
        await visible_transactions(db, user, household_ids),
        {h.id: h for h in households},
        user.id,
        selected,
        goals=await visible_goals(db, user, household_ids),
        assets=await owned(db, Asset, user),
        categories=await category_lookup(db, user),
        grouping=grouping.value,
        contributor_id=user.id,
    )
    return MonthlySummaryResponse(
        month=summary.month,
        currency=user.currency,
        income=summary.income,
        expenses=summary.expenses,
        savings=summary.savings,
        net_balance=summary.net_balance,
        income_items=summary.income_items,
        expense_groups=[ExpenseGroupResponse.model_validate(g) for g in summary.expense_groups],
        contributions=summary.contributions,
    )


@router.post("/quick-edit/{tx_id}", response_model=TransactionResponse)
async def quick_edit(
    tx_id: uuid.UUID,
    payload: QuickEdit,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change a recurring amount for just the selected month, or from it onward."""
    tx = await get_or_404(db, Transaction, tx_id, "Transaction")
    authorize(user, "transaction", "write", tx, household=await load_household(db, tx.household_id))
    if tx.frequency != "recurring":
        raise HTTPException(status_code=400, detail="Only recurring entries can be quick-edited")

    month = date(payload.year, payload.month, 1)
    if payload.scope.value == "this_month":
        history = update_this_month_only(tx, month, payload.amount)
    else:
        history = update_from_month(tx, month, payload.amount)

    tx.amounts = [AmountChange(amount=amount, date=day) for day, amount in history]
    await db.flush()
    await db.refresh(tx)

    response = TransactionResponse.model_validate(tx)
    response.current_amount = amount_for_date(tx, date.today())
    return response


@router.get("/compare", response_model=CompareResponse)
async def compare(
    a_start: date,
    a_end: date,
    b_start: date,
    b_end: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Per-category expenses in period A against period B."""
    if a_end < a_start or b_end < b_start:
        raise HTTPException(status_code=422, detail="Each period must end on or after its start")

    households = await my_households(db, user)
    by_id = {h.id: h for h in households}
    transactions = await visible_transactions(db, user, list(by_id))
    categories = await category_lookup(db, user)

    metrics_a = period_metrics(transactions, by_id, user.id, a_start, a_end, categories)
    metrics_b = period_metrics(transactions, by_id, user.id, b_start, b_end, categories)
    return CompareResponse(
        currency=user.currency,
        period_a=PeriodTotals(
            start=a_start, end=a_end,
            total_income=metrics_a.total_income, total_expenses=metrics_a.total_expenses,
        ),
        period_b=PeriodTotals(
            start=b_start, end=b_end,
            total_income=metrics_b.total_income, total_expenses=metrics_b.total_expenses,
        ),
        categories=compare_periods(metrics_a, metrics_b),
    )


@router.get("/cashflow", response_model=CashflowResponse)
async def get_cashflow(
    start: date,
    end: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Month-by-month income, expenses, savings and category spend over a range of whole months."""
    if end < start:
        raise HTTPException(status_code=422, detail="end must be on or after start")
    if end.year * 12 + end.month - (start.year * 12 + start.month) >= CASHFLOW_MAX_MONTHS:
        raise HTTPException(status_code=422, detail=f"The range can span at most {CASHFLOW_MAX_MONTHS} months")
    start, end = month_start(start), month_end(end)

    households = await my_households(db, user)
    household_ids = [h.id for h in households]
    report = cashflow(
        await visible_transactions(db, user, household_ids),
        {h.id: h for h in households},
        user.id,
        start,
        end,
        await category_lookup(db, user),
        goals=await visible_goals(db, user, household_ids),
        assets=await owned(db, Asset, user),
        contributor_id=user.id,
    )
    return CashflowResponse(
        currency=user.currency,
        start=start,
        end=end,
        income=report.income,
        expenses=report.expenses,
        savings=report.savings,
        net=report.net,
        expenses_percent=report.share_of_income(report.expenses),
        savings_percent=report.share_of_income(report.savings),
        net_percent=report.share_of_income(report.net),
        months=[
            CashflowMonthResponse(
                month=m.month, income=m.income, expenses=m.expenses, savings=m.savings, net=m.net, categories=m.categories
            )
            for m in report.months
        ],
        expense_breakdown=report.expense_breakdown,
    )

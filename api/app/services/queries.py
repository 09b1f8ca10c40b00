"""Async loaders shared by the routers.

Each loader returns fully-loaded ORM rows (children come in via selectin) so
the pure services can evaluate them without further I/O.
"""

import asyncio
import uuid
from datetime import date

from fastapi import HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.asset import Asset
from app.models.category import Category
from app.models.household import Household, HouseholdMember
from app.models.investment import Investment
from app.models.liability import Liability
from app.models.savings import SavingGoal
from app.models.transaction import Transaction
from app.models.user import User
from app.services import categories as category_defaults
from app.services.currency import get_rates
from app.services.market_data import get_price_histories
from app.services.periods import years_ago
from app.services.valuation import HISTORY_MAX_YEARS, Portfolio


async def get_or_404(db: AsyncSession, model, obj_id: uuid.UUID, label: str):
    obj = await db.get(model, obj_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


async def my_households(db: AsyncSession, user: User) -> list[Household]:
    result = await db.execute(
        select(Household)
        .join(HouseholdMember, HouseholdMember.household_id == Household.id)
        .where(HouseholdMember.user_id == user.id)
        .order_by(Household.created_at)
    )
    return list(result.scalars().unique().all())


async def load_household(db: AsyncSession, household_id: uuid.UUID | None) -> Household | None:
    if household_id is None:
        return None
    return await db.get(Household, household_id)


def parse_sharing(sharing: str | None, households: list[Household]) -> uuid.UUID | None:
    """Resolve a "personal" / household-id sharing value to a household_id column value."""
    if sharing is None or sharing == "personal":
        return None
    try:
        household_id = uuid.UUID(sharing)
    except ValueError:
        raise HTTPException(status_code=422, detail="sharing must be 'personal' or a household id")
    if household_id not in {h.id for h in households}:
        raise HTTPException(status_code=403, detail="You don't have permission to do that")
    return household_id


async def visible_transactions(db: AsyncSession, user: User, household_ids: list[uuid.UUID]) -> list[Transaction]:
    """The user's own entries plus entries shared with any of their households."""
    clause = Transaction.user_id == user.id
    if household_ids:
        clause = or_(clause, Transaction.household_id.in_(household_ids))
    result = await db.execute(select(Transaction).where(clause).order_by(Transaction.created_at))
    return list(result.scalars().all())


async def visible_goals(db: AsyncSession, user: User, household_ids: list[uuid.UUID]) -> list[SavingGoal]:
    clause = SavingGoal.user_id == user.id
    if household_ids:
        clause = or_(clause, SavingGoal.household_id.in_(household_ids))
    result = await db.execute(select(SavingGoal).where(clause).order_by(SavingGoal.created_at))
    return list(result.scalars().all())


async def owned(db: AsyncSession, model, user: User) -> list:
    result = await db.execute(select(model).where(model.user_id == user.id).order_by(model.created_at))
    return list(result.scalars().all())


async def custom_categories(db: AsyncSession, user: User) -> list[Category]:
    return await owned(db, Category, user)


async def category_lookup(db: AsyncSession, user: User) -> dict[str, dict]:
    """Category id → row for every expense and income category the user can pick."""
    custom = await custom_categories(db, user)
    rows = category_defaults.merged(category_defaults.EXPENSE, custom)
    rows += category_defaults.merged(category_defaults.INCOME, custom)
    return {row["id"]: row for row in rows}


async def load_portfolio(db: AsyncSession, user: User, today: date) -> Portfolio:
    """Everything the net-worth views need, with rates and price histories fetched concurrently."""
    assets = await owned(db, Asset, user)
    goals = await owned(db, SavingGoal, user)
    investments = await owned(db, Investment, user)
    liabilities = await owned(db, Liability, user)

    currencies = [a.currency for a in assets]
    currencies += [t.currency for i in investments for t in i.transactions]
    rates, price_history = await asyncio.gather(
        get_rates(currencies, user.currency),
        get_price_histories([i.ticker for i in investments], years_ago(today, HISTORY_MAX_YEARS)),
    )
    return Portfolio(
        assets=assets,
        goals=goals,
        investments=investments,
        liabilities=liabilities,
        rates=rates,
        price_history=price_history,
    )

"""Monthly cash-flow view over budgeted income and expense entries.

An entry's amount is a dated history: the amount in effect on a date is the
latest change on or before it. One-off entries count only in the month of
their first amount; recurring entries count every month from their first
amount until the month of their end date (inclusive).

Shared expenses (household_id set) count at the viewing user's share under
the household's split rule; a shared expense whose household is gone counts
as zero.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from app.services.periods import add_months, iter_months, month_end, month_start
from app.services.valuation import latest_at

ZERO = Decimal(0)
UNCATEGORIZED = "Uncategorized"


# ─── Amount history ────────────────────────────────────────────────────────────

def amount_for_date(tx, on: date) -> Decimal:
    entry = latest_at(tx.amounts, on)
    return entry.amount if entry else ZERO


def first_amount_date(tx) -> date | None:
    return min((a.date for a in tx.amounts), default=None)


def is_active_in_month(tx, month: date) -> bool:
    first = first_amount_date(tx)
    if first is None:
        return False
    start, end = month_start(month), month_end(month)
    if tx.frequency == "one-off":
        return start <= first <= end
    if first > end:
        return False
    return tx.end_date is None or month_end(tx.end_date) >= start


# ─── Household splits ──────────────────────────────────────────────────────────

def income_for_date(member, on: date) -> Decimal:
    if member is None:
        return ZERO
    entry = latest_at(member.income_history or (), on)
    return entry.amount if entry else ZERO


def _weights(household, on: date) -> dict[uuid.UUID, Decimal] | None:
    """Per-member weights for the split rule, or None for an equal split."""
    if household.split_type == "shares":
        weights = {m.user_id: Decimal(m.share or 0) for m in household.members}
    elif household.split_type == "income_ratio":
        weights = {m.user_id: income_for_date(m, on) for m in household.members}
    else:
        return None
    # Zero total falls back to an equal split
    return weights if sum(weights.values(), ZERO) > 0 else None


def split_amount(household, amount: Decimal, on: date) -> dict[uuid.UUID, Decimal]:
    """Every member's share of `amount`."""
    members = list(household.members)
    if not members:
        return {}
    weights = _weights(household, on)
    if weights is None:
        each = amount / len(members)
        return {m.user_id: each for m in members}
    total = sum(weights.values(), ZERO)
    return {user_id: amount * w / total for user_id, w in weights.items()}


def member_share(household, user_id: uuid.UUID, amount: Decimal, on: date) -> Decimal:
    return split_amount(household, amount, on).get(user_id, ZERO)


def display_amount(tx, user_id: uuid.UUID, households: Mapping[uuid.UUID, object], on: date) -> Decimal:
    """What the entry costs the viewing user on `on`."""
    amount = amount_for_date(tx, on)
    if tx.transaction_type != "expense" or tx.household_id is None:
        return amount
    household = households.get(tx.household_id)
    if household is None:
        return ZERO
    return member_share(household, user_id, amount, on)


# ─── Monthly summary ───────────────────────────────────────────────────────────

@dataclass
class ExpenseGroup:
    name: str
    total: Decimal = ZERO
    icon: str | None = None
    color: str | None = None
    items: list[dict] = field(default_factory=list)


@dataclass
class MonthlySummary:
    month: date
    income: Decimal
    expenses: Decimal
    savings: Decimal
    income_items: list[dict]
    expense_groups: list[ExpenseGroup]
    contributions: list[dict]

    @property
    def net_balance(self) -> Decimal:
        return self.income - self.expenses - self.savings


def _group_key(tx, grouping: str, categories: Mapping) -> tuple[str, str | None, str | None]:
    if grouping == "classification":
        return ("Wants" if tx.classification == "want" else "Needs"), None, None
    if grouping == "category":
        category = categories.get(tx.category_id) if tx.category_id else None
        if category is not None:
            return category["name"], category["icon"], category["color"]
        return UNCATEGORIZED, None, None
    return "All Expenses", None, None


def month_contributions(goals: Iterable, assets: Iterable, start: date, end: date, contributor_id=None) -> list[dict]:
    """Goal and asset contributions dated inside [start, end]."""
    rows = [
        {"id": c.id, "name": f'To "{g.name}"', "amount": c.amount, "kind": "savings", "target_id": g.id}
        for g in goals
        for c in g.contributions
        if start <= c.date <= end and (contributor_id is None or c.user_id == contributor_id)
    ]
    rows += [
        {"id": c.id, "name": f'To "{a.name}"', "amount": c.amount, "kind": "asset", "target_id": a.id}
        for a in assets
        for c in (a.contributions or ())
        if start <= c.date <= end
    ]
    return rows


def monthly_summary(
    transactions: Iterable,
    households: Mapping[uuid.UUID, object],
    user_id: uuid.UUID,
    month: date,
    goals: Iterable = (),
    assets: Iterable = (),
    categories: Mapping | None = None,
    grouping: str = "category",
    contributor_id: uuid.UUID | None = None,
) -> MonthlySummary:
    """Income, the user's expenses and savings for one month.

    With `contributor_id`, only that user's goal contributions count as savings
    (shared goals carry everyone's contributions).
    """
    categories = categories or {}
    start, end = month_start(month), month_end(month)
    active = [t for t in transactions if is_active_in_month(t, month)]

    income_items = sorted(
        (
            {"id": t.id, "name": t.name, "category_id": t.category_id, "amount": amount_for_date(t, end)}
            for t in active
            if t.transaction_type == "income"
        ),
        key=lambda i: i["amount"],
        reverse=True,
    )

    groups: dict[str, ExpenseGroup] = {}
    for t in active:
        if t.transaction_type != "expense":
            continue
        amount = display_amount(t, user_id, households, end)
        name, icon, color = _group_key(t, grouping, categories)
        group = groups.setdefault(name, ExpenseGroup(name=name, icon=icon, color=color))
        group.total += amount
        group.items.append({
            "id": t.id,
            "name": t.name,
            "category_id": t.category_id,
            "classification": t.classification,
            "sharing": t.sharing,
            "total_amount": amount_for_date(t, end),
            "amount": amount,
        })
    expense_groups = sorted(groups.values(), key=lambda g: g.total, reverse=True)
    for group in expense_groups:
        group.items.sort(key=lambda i: i["amount"], reverse=True)

    contributions = month_contributions(goals, assets, start, end, contributor_id)
    contributions.sort(key=lambda c: c["amount"], reverse=True)

    return MonthlySummary(
        month=start,
        income=sum((i["amount"] for i in income_items), ZERO),
        expenses=sum((g.total for g in expense_groups), ZERO),
        savings=sum((c["amount"] for c in contributions), ZERO),
        income_items=income_items,
        expense_groups=expense_groups,
        contributions=contributions,
    )


# ─── Period comparison ─────────────────────────────────────────────────────────

@dataclass
class PeriodMetrics:
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    category_totals: dict[str, Decimal] = field(default_factory=dict)
    category_transactions: dict[str, list[dict]] = field(default_factory=dict)


def period_metrics(
    transactions: Sequence,
    households: Mapping[uuid.UUID, object],
    user_id: uuid.UUID,
    start: date,
    end: date,
    categories: Mapping,
) -> PeriodMetrics:
    metrics = PeriodMetrics()
    per_tx: dict[uuid.UUID, Decimal] = {}

    for month in iter_months(start, end):
        last_day = month_end(month)
        for t in transactions:
            if not is_active_in_month(t, month):
                continue
            if t.transaction_type == "income":
                metrics.total_income += amount_for_date(t, last_day)
                continue
            amount = display_amount(t, user_id, households, last_day)
            name = _category_name(t, categories)
            metrics.total_expenses += amount
            metrics.category_totals[name] = metrics.category_totals.get(name, ZERO) + amount
            per_tx[t.id] = per_tx.get(t.id, ZERO) + amount

    for t in transactions:
        if t.transaction_type == "expense" and per_tx.get(t.id, ZERO) > 0:
            metrics.category_transactions.setdefault(_category_name(t, categories), []).append(
                {"id": t.id, "name": t.name, "amount": per_tx[t.id]}
            )
    return metrics


def _category_name(tx, categories: Mapping) -> str:
    category = categories.get(tx.category_id) if tx.category_id else None
    return category["name"] if category is not None else UNCATEGORIZED


def compare_periods(a: PeriodMetrics, b: PeriodMetrics) -> list[dict]:
    """Per-category change from period A to period B, largest B first.

    The percentage change is None when A is zero.
    """
    names = list(dict.fromkeys([*a.category_totals, *b.category_totals]))
    rows = []
    for name in names:
        amount_a = a.category_totals.get(name, ZERO)
        amount_b = b.category_totals.get(name, ZERO)
        change = amount_b - amount_a
        rows.append({
            "category": name,
            "amount_a": amount_a,
            "amount_b": amount_b,
            "change_abs": change,
            "change_percent": (change / amount_a * 100).quantize(Decimal("0.01")) if amount_a else None,
            "transactions_a": a.category_transactions.get(name, []),
            "transactions_b": b.category_transactions.get(name, []),
        })
    rows.sort(key=lambda r: r["amount_b"], reverse=True)
    return rows


# ─── Cash flow over a range ────────────────────────────────────────────────────

@dataclass
class CashflowMonth:
    month: date
    income: Decimal
    expenses: Decimal
    savings: Decimal
    categories: dict[str, Decimal]

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses - self.savings


@dataclass
class Cashflow:
    months: list[CashflowMonth]
    income: Decimal
    expenses: Decimal
    savings: Decimal
    expense_breakdown: list[dict]

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses - self.savings

    def share_of_income(self, amount: Decimal) -> Decimal | None:
        if self.income <= 0:
            return None
        return (amount / self.income * 100).quantize(Decimal("0.1"))


def cashflow(
    transactions: Sequence,
    households: Mapping[uuid.UUID, object],
    user_id: uuid.UUID,
    start: date,
    end: date,
    categories: Mapping,
    goals: Iterable = (),
    assets: Iterable = (),
    contributor_id: uuid.UUID | None = None,
) -> Cashflow:
    """Income, the user's expenses, savings and per-category spend for every month in range.

    Each month is evaluated like a one-month comparison period, so amounts
    and household shares match the monthly view.
    """
    goals, assets = list(goals), list(assets)
    months = []
    for month in iter_months(start, end):
        last_day = month_end(month)
        metrics = period_metrics(transactions, households, user_id, month, last_day, categories)
        saved = month_contributions(goals, assets, month, last_day, contributor_id)
        months.append(
            CashflowMonth(
                month=month,
                income=metrics.total_income,
                expenses=metrics.total_expenses,
                savings=sum((c["amount"] for c in saved), ZERO),
                categories={name: total for name, total in metrics.category_totals.items() if total > 0},
            )
        )

    by_category: dict[str, Decimal] = {}
    for m in months:
        for name, total in m.categories.items():
            by_category[name] = by_category.get(name, ZERO) + total
    expenses = sum((m.expenses for m in months), ZERO)
    breakdown = [
        {
            "category": name,
            "value": total,
            "percent": (total / expenses * 100).quantize(Decimal("0.1")) if expenses > 0 else ZERO,
        }
        for name, total in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)
    ]
    return Cashflow(
        months=months,
        income=sum((m.income for m in months), ZERO),
        expenses=expenses,
        savings=sum((m.savings for m in months), ZERO),
        expense_breakdown=breakdown,
    )


# ─── Quick edits of a recurring amount ─────────────────────────────────────────

def update_this_month_only(tx, month: date, new_amount: Decimal) -> list[tuple[date, Decimal]]:
    """New amount history overriding one month only.

    Changes already inside the month are replaced. The previous amount is
    re-inserted at the start of next month unless next month has its own change.
    """
    start, end = month_start(month), month_end(month)
    original = amount_for_date(tx, end)
    history = [(a.date, a.amount) for a in tx.amounts if not start <= a.date <= end]
    history.append((start, new_amount))

    next_start = add_months(start, 1)
    next_end = month_end(next_start)
    if not any(next_start <= a.date <= next_end for a in tx.amounts):
        history.append((next_start, original))
    return sorted(history, key=lambda h: h[0])


def update_from_month(tx, month: date, new_amount: Decimal) -> list[tuple[date, Decimal]]:
    """New amount history replacing every change from this month onward."""
    start = month_start(month)
    history = [(a.date, a.amount) for a in tx.amounts if a.date < start]
    history.append((start, new_amount))
    return sorted(history, key=lambda h: h[0])

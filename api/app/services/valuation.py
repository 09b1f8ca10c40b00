"""Net worth valuation.

Pure functions over already-loaded rows. Nothing here touches the database or
the network: callers fetch assets, goals, investments and liabilities, resolve
conversion rates and price histories up front, then evaluate any date.

Every "value at a date" follows the same rule: sort the dated list, take the
latest entry at or before the date, and treat "nothing yet" as zero:

    assets       : latest value-history entry × rate(asset.currency → display)
    savings      : sum of goal contributions dated on/before the date
    investments  : shares held on the date × last close on/before it × rate(USD)
    liabilities  : current balance (no history is kept)
    net worth    : assets + savings + investments − liabilities
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from app.services.periods import add_months, iter_months, month_end, same_month, years_ago

ZERO = Decimal(0)
ONE = Decimal(1)

# Growth assumption used when estimating when the net-worth target is reached
TARGET_ESTIMATE_GROWTH_RATE = Decimal(7)
TARGET_ESTIMATE_MAX_MONTHS = 1200

HISTORY_MAX_YEARS = 5


# ─── Point-in-time lookups ─────────────────────────────────────────────────────

def latest_at(entries: Iterable, on: date):
    """Return the entry with the greatest date on or before `on`, or None."""
    best = None
    for entry in entries:
        if entry.date <= on and (best is None or entry.date >= best.date):
            best = entry
    return best


def rate_for(rates: Mapping[str, Decimal], currency: str | None) -> Decimal:
    # A missing rate means the fetch failed; the provider policy is 1:1
    return rates.get(currency or "USD", ONE) if rates else ONE


def asset_value(asset, on: date, rates: Mapping[str, Decimal]) -> Decimal:
    entry = latest_at(asset.value_history, on)
    native = entry.value if entry else ZERO
    return native * rate_for(rates, asset.currency)


def savings_value(goal, on: date) -> Decimal:
    return sum((c.amount for c in goal.contributions if c.date <= on), ZERO)


def shares_held(investment, on: date) -> Decimal:
    return sum((t.shares for t in investment.transactions if t.date <= on), ZERO)


def price_at(history: Sequence | None, on: date) -> Decimal:
    if not history:
        return ZERO
    point = latest_at(history, on)
    return point.close if point else ZERO


def investment_value(
    investment,
    on: date,
    price_history: Mapping[str, Sequence],
    usd_rate: Decimal = ONE,
) -> Decimal:
    """Shares held × last known close, converted from USD to the display currency."""
    shares = shares_held(investment, on)
    if shares == 0:
        return ZERO
    price = price_at(price_history.get(investment.ticker.upper()), on)
    return shares * price * usd_rate


def liabilities_total(liabilities: Iterable) -> Decimal:
    return sum((l.current_balance or ZERO for l in liabilities), ZERO)


# ─── Net worth ─────────────────────────────────────────────────────────────────

@dataclass
class NetWorthBreakdown:
    as_of: date
    assets: Decimal = ZERO
    savings: Decimal = ZERO
    investments: Decimal = ZERO
    liabilities: Decimal = ZERO

    @property
    def total_assets(self) -> Decimal:
        return self.assets + self.savings + self.investments

    @property
    def net_worth(self) -> Decimal:
        return self.total_assets - self.liabilities


@dataclass
class Portfolio:
    """Everything a net-worth evaluation needs, already converted to lookups."""
    assets: Sequence = ()
    goals: Sequence = ()
    investments: Sequence = ()
    liabilities: Sequence = ()
    rates: Mapping[str, Decimal] = field(default_factory=dict)
    price_history: Mapping[str, Sequence] = field(default_factory=dict)

    @property
    def usd_rate(self) -> Decimal:
        return rate_for(self.rates, "USD")


def net_worth_at(portfolio: Portfolio, on: date) -> NetWorthBreakdown:
    return NetWorthBreakdown(
        as_of=on,
        assets=sum((asset_value(a, on, portfolio.rates) for a in portfolio.assets), ZERO),
        savings=sum((savings_value(g, on) for g in portfolio.goals), ZERO),
        investments=sum(
            (investment_value(i, on, portfolio.price_history, portfolio.usd_rate) for i in portfolio.investments),
            ZERO,
        ),
        liabilities=liabilities_total(portfolio.liabilities),
    )


def history_start(portfolio: Portfolio, today: date, max_years: int = HISTORY_MAX_YEARS) -> date | None:
    """Earliest dated entry across assets, goals and investments, at most `max_years` back."""
    dates = [v.date for a in portfolio.assets for v in a.value_history]
    dates += [g.start_date for g in portfolio.goals]
    dates += [t.date for i in portfolio.investments for t in i.transactions]
    if not dates:
        return None
    return max(min(dates), years_ago(today, max_years))


def net_worth_history(portfolio: Portfolio, start: date, today: date) -> list[tuple[date, Decimal]]:
    """One (month, net worth) point per calendar month from start through today.

    Each month is evaluated at its last day; the current month is evaluated today.
    """
    points: list[tuple[date, Decimal]] = []
    for month in iter_months(start, today):
        on = today if same_month(month, today) else month_end(month)
        points.append((month, net_worth_at(portfolio, on).net_worth.quantize(Decimal("0.01"))))
    return points


# ─── Listings and breakdowns ───────────────────────────────────────────────────

def format_liability_type(liability_type: str | None) -> str:
    if not liability_type:
        return "Other"
    return liability_type.replace("_", " ").title()


def combined_holdings(portfolio: Portfolio, on: date, asset_icons: Mapping[str, str]) -> list[dict]:
    """Assets, savings goals and investments as one list of valued rows."""
    rows = [
        {
            "id": a.id, "name": a.name, "type": a.type, "kind": "asset",
            "icon": asset_icons.get(a.type, "Landmark"),
            "value": asset_value(a, on, portfolio.rates),
        }
        for a in portfolio.assets
    ]
    rows += [
        {
            "id": g.id, "name": g.name, "type": "Savings Goal", "kind": "savings",
            "icon": "PiggyBank", "value": savings_value(g, on),
        }
        for g in portfolio.goals
    ]
    rows += [
        {
            "id": i.id, "name": i.name, "type": "Investment", "kind": "investment",
            "icon": "CandlestickChart",
            "value": investment_value(i, on, portfolio.price_history, portfolio.usd_rate),
        }
        for i in portfolio.investments
    ]
    return rows


def breakdown_by_type(rows: Iterable[dict]) -> list[dict]:
    """Sum valued rows per type, largest first."""
    totals: dict[str, dict] = {}
    for row in rows:
        bucket = totals.setdefault(row["type"], {"type": row["type"], "icon": row.get("icon"), "value": ZERO})
        bucket["value"] += row["value"]
    return sorted(totals.values(), key=lambda b: b["value"], reverse=True)


def asset_breakdown(holdings: Iterable[dict]) -> list[dict]:
    """Holdings with a positive value, grouped by type."""
    return breakdown_by_type(row for row in holdings if row["value"] > 0)


def liability_breakdown(liabilities: Iterable) -> list[dict]:
    return breakdown_by_type(
        {"type": format_liability_type(l.type), "value": l.current_balance or ZERO}
        for l in liabilities
    )


# ─── Contribution rate and target estimate ─────────────────────────────────────

def _within_last_year(d: date, today: date) -> bool:
    return add_months(today, -12) <= d <= today


def monthly_contribution_rate(portfolio: Portfolio, today: date, include_investments: bool = True) -> Decimal:
    """Average monthly amount put in over the trailing twelve months.

    Investment buys are converted from their transaction currency; sells are ignored.
    """
    total = sum(
        (c.amount for a in portfolio.assets for c in a.contributions if _within_last_year(c.date, today)),
        ZERO,
    )
    total += sum(
        (c.amount for g in portfolio.goals for c in g.contributions if _within_last_year(c.date, today)),
        ZERO,
    )
    if include_investments:
        total += sum(
            (
                t.price * t.shares * rate_for(portfolio.rates, t.currency)
                for i in portfolio.investments
                for t in i.transactions
                if t.shares > 0 and _within_last_year(t.date, today)
            ),
            ZERO,
        )
    return total / 12


def months_to_target(
    net_worth: Decimal,
    target: Decimal,
    monthly_contribution: Decimal,
    annual_growth_rate: Decimal = TARGET_ESTIMATE_GROWTH_RATE,
) -> int | None:
    """Months of contribute-then-grow compounding until `target` is reached.

    None when the target is already met, nothing is being contributed, or it takes
    longer than TARGET_ESTIMATE_MAX_MONTHS.
    """
    if net_worth >= target:
        return None
    if monthly_contribution <= 0:
        return None

    monthly_rate = annual_growth_rate / 100 / 12
    value = net_worth
    months = 0
    while value < target:
        value = (value + monthly_contribution) * (1 + monthly_rate)
        months += 1
        if months > TARGET_ESTIMATE_MAX_MONTHS:
            return None
    return months


def estimate_target_date(
    net_worth: Decimal,
    target: Decimal,
    monthly_contribution: Decimal,
    today: date,
) -> date | None:
    months = months_to_target(net_worth, target, monthly_contribution)
    return add_months(today, months) if months else None


# ─── Investment position ───────────────────────────────────────────────────────

@dataclass
class PositionSummary:
    total_shares: Decimal
    total_cost: Decimal
    current_price: Decimal
    current_value: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal


def investment_summary(investment, current_price: Decimal | None, rates: Mapping[str, Decimal]) -> PositionSummary:
    """Cost basis (converted per transaction) against value at the live price.

    A missing quote values the position at zero, showing the full cost as a loss.
    """
    total_shares = sum((t.shares for t in investment.transactions), ZERO)
    total_cost = sum(
        (t.shares * t.price * rate_for(rates, t.currency) for t in investment.transactions),
        ZERO,
    )
    price = current_price or ZERO
    current_value = total_shares * price * rate_for(rates, "USD")
    gain_loss = current_value - total_cost
    percent = (gain_loss / total_cost * 100) if total_cost > 0 else ZERO
    return PositionSummary(
        total_shares=total_shares,
        total_cost=total_cost,
        current_price=price,
        current_value=current_value,
        gain_loss=gain_loss,
        gain_loss_percent=percent.quantize(Decimal("0.01")),
    )


# ─── Dividends and position history ────────────────────────────────────────────

@dataclass
class DividendPayout:
    date: date
    amount_per_share: Decimal  # USD
    shares_held: Decimal
    payout: Decimal  # USD


def dividend_payouts(investment, dividends: Iterable) -> list[DividendPayout]:
    """Dividends paid while shares were held, newest first."""
    payouts = []
    for div in dividends:
        held = shares_held(investment, div.date)
        if held > 0:
            payouts.append(
                DividendPayout(date=div.date, amount_per_share=div.amount, shares_held=held, payout=held * div.amount)
            )
    payouts.sort(key=lambda p: p.date, reverse=True)
    return payouts


def total_dividends(payouts: Iterable[DividendPayout], usd_rate: Decimal = ONE) -> Decimal:
    return sum((p.payout for p in payouts), ZERO) * usd_rate


@dataclass
class PositionPoint:
    month: date
    initial_capital: Decimal
    contributions: Decimal
    growth: Decimal
    total_value: Decimal


def position_history(investment, prices: Sequence, rates: Mapping[str, Decimal], today: date) -> list[PositionPoint]:
    """Month-end value of one position since its first transaction.

    Buys on the first day count as initial capital; everything later is a
    contribution. Costs convert per transaction, the value at the USD rate.
    """
    transactions = sorted(investment.transactions, key=lambda t: t.date)
    if not transactions or not prices:
        return []
    first_day = transactions[0].date
    usd_rate = rate_for(rates, "USD")

    def cost(t) -> Decimal:
        return t.shares * t.price * rate_for(rates, t.currency)

    initial = sum((cost(t) for t in transactions if t.date == first_day), ZERO)
    points = []
    for month in iter_months(first_day, today):
        on = today if same_month(month, today) else month_end(month)
        value = shares_held(investment, on) * price_at(prices, on) * usd_rate
        contributions = sum((cost(t) for t in transactions if first_day < t.date <= on), ZERO)
        points.append(
            PositionPoint(
                month=month,
                initial_capital=initial,
                contributions=contributions,
                growth=value - initial - contributions,
                total_value=value,
            )
        )
    return points

"""Compound-growth projection of net worth.

Each projected month first adds the monthly contribution, then applies one
month of growth at annual_rate / 12. The projected value is always split into
the starting capital, cumulative contributions and the growth on top.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from app.services.periods import add_months

ZERO = Decimal(0)


@dataclass
class ProjectionPoint:
    date: date
    initial_capital: Decimal
    contributions: Decimal
    growth: Decimal

    @property
    def total(self) -> Decimal:
        return self.initial_capital + self.contributions + self.growth


@dataclass
class Projection:
    points: list[ProjectionPoint]
    final_value: Decimal
    total_contributions: Decimal
    total_growth: Decimal
    yearly: list[tuple[int, Decimal]]


def project(
    current_net_worth: Decimal,
    years: int,
    annual_growth_rate: Decimal,
    monthly_contribution: Decimal,
    start: date,
) -> Projection:
    if years < 1:
        raise ValueError("Must project at least 1 year.")
    if annual_growth_rate < 0:
        raise ValueError("Growth rate can't be negative.")
    if monthly_contribution < 0:
        raise ValueError("Contribution can't be negative.")

    monthly_rate = Decimal(annual_growth_rate) / 100 / 12
    value = Decimal(current_net_worth)
    contributed = ZERO
    points: list[ProjectionPoint] = []

    for month in range(years * 12):
        value = (value + monthly_contribution) * (1 + monthly_rate)
        contributed += monthly_contribution
        points.append(
            ProjectionPoint(
                date=add_months(start, month + 1),
                initial_capital=current_net_worth,
                contributions=contributed,
                growth=value - current_net_worth - contributed,
            )
        )

    yearly = [(start.year, Decimal(current_net_worth))]
    for year in range(1, years + 1):
        yearly.append((start.year + year, points[year * 12 - 1].total))

    last = points[-1]
    return Projection(
        points=points,
        final_value=last.total,
        total_contributions=last.contributions,
        total_growth=last.growth,
        yearly=yearly,
    )


def default_monthly_contribution(saved: Decimal | None, trailing_rate: Decimal) -> Decimal:
    """The user's saved default wins; otherwise the trailing rate rounded to a whole amount."""
    if saved is not None and saved >= 0:
        return saved
    if trailing_rate >= 0:
        return trailing_rate.quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return ZERO

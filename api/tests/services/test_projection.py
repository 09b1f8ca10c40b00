"""
Unit tests for projection: compound growth with monthly contributions.
"""
from datetime import date
from decimal import Decimal

import pytest

from app.services.projection import default_monthly_contribution, project

START = date(2024, 1, 15)


class TestProject:
    def test_zero_growth_is_capital_plus_contributions(self):
        result = project(Decimal(1000), 1, Decimal(0), Decimal(100), START)
        assert len(result.points) == 12
        assert result.final_value == Decimal(2200)
        assert result.total_contributions == Decimal(1200)
        assert result.total_growth == 0

    def test_contribution_added_before_growth(self):
        # One month at 12% a year: (1000 + 100) * 1.01
        result = project(Decimal(1000), 1, Decimal(12), Decimal(100), START)
        assert result.points[0].total == Decimal("1111.00")

    def test_points_are_monthly_after_start(self):
        result = project(Decimal(0), 1, Decimal(7), Decimal(50), START)
        assert result.points[0].date == date(2024, 2, 15)
        assert result.points[-1].date == date(2025, 1, 15)

    def test_split_always_sums_to_total(self):
        result = project(Decimal(5000), 3, Decimal(7), Decimal(250), START)
        for point in result.points:
            assert point.initial_capital + point.contributions + point.growth == point.total
            assert point.initial_capital == Decimal(5000)

    def test_yearly_rows_start_with_current_value(self):
        result = project(Decimal(5000), 2, Decimal(7), Decimal(0), START)
        years = [y for y, _ in result.yearly]
        assert years == [2024, 2025, 2026]
        assert result.yearly[0][1] == Decimal(5000)
        assert result.yearly[-1][1] == result.final_value

    @pytest.mark.parametrize(
        "years,rate,contribution",
        [(0, Decimal(7), Decimal(0)), (1, Decimal(-1), Decimal(0)), (1, Decimal(7), Decimal(-5))],
    )
    def test_invalid_inputs(self, years, rate, contribution):
        with pytest.raises(ValueError):
            project(Decimal(0), years, rate, contribution, START)


class TestDefaultContribution:
    def test_saved_default_wins(self):
        assert default_monthly_contribution(Decimal(300), Decimal("812.40")) == Decimal(300)

    def test_saved_zero_is_respected(self):
        assert default_monthly_contribution(Decimal(0), Decimal(500)) == Decimal(0)

    def test_trailing_rate_rounded(self):
        assert default_monthly_contribution(None, Decimal("812.50")) == Decimal(813)

    def test_negative_trailing_rate_is_zero(self):
        assert default_monthly_contribution(None, Decimal(-40)) == Decimal(0)

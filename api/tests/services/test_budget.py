"""
Unit tests for budget: amount histories, household splits, monthly summary,
period comparison and quick edits. Pure functions, no DB.
"""
import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace as NS

import pytest

from app.services.budget import (
    amount_for_date,
    cashflow,
    compare_periods,
    display_amount,
    is_active_in_month,
    monthly_summary,
    period_metrics,
    split_amount,
    update_from_month,
    update_this_month_only,
)

ALICE = uuid.uuid4()
BOB = uuid.uuid4()
HOME = uuid.uuid4()


def _tx(
    amounts,
    type="expense",
    frequency="recurring",
    end_date=None,
    household_id=None,
    category_id=None,
    classification="need",
    name="Rent",
):
    return NS(
        id=uuid.uuid4(),
        name=name,
        transaction_type=type,
        frequency=frequency,
        end_date=end_date,
        household_id=household_id,
        category_id=category_id,
        classification=classification,
        sharing=str(household_id) if household_id else "personal",
        amounts=[NS(date=d, amount=Decimal(a)) for d, a in amounts],
    )


def _member(user_id, share=0, income=()):
    return NS(user_id=user_id, share=Decimal(share), income_history=[NS(date=d, amount=Decimal(a)) for d, a in income])


def _household(split_type="equal", members=None):
    return NS(id=HOME, split_type=split_type, members=members or [_member(ALICE), _member(BOB)])


# ── amount history and activity ──────────────────────────────────────────────

class TestAmountHistory:
    def test_amount_follows_latest_change(self):
        tx = _tx([(date(2024, 1, 1), "100"), (date(2024, 4, 1), "120")])
        assert amount_for_date(tx, date(2024, 3, 31)) == Decimal(100)
        assert amount_for_date(tx, date(2024, 4, 1)) == Decimal(120)

    def test_before_first_amount_is_zero(self):
        tx = _tx([(date(2024, 1, 1), "100")])
        assert amount_for_date(tx, date(2023, 12, 31)) == 0

    def test_one_off_only_in_its_month(self):
        tx = _tx([(date(2024, 3, 14), "50")], frequency="one-off")
        assert is_active_in_month(tx, date(2024, 3, 1))
        assert not is_active_in_month(tx, date(2024, 4, 1))

    def test_recurring_until_end_month_inclusive(self):
        tx = _tx([(date(2024, 1, 20), "50")], end_date=date(2024, 5, 3))
        assert not is_active_in_month(tx, date(2023, 12, 1))
        assert is_active_in_month(tx, date(2024, 1, 1))
        assert is_active_in_month(tx, date(2024, 5, 1))
        assert not is_active_in_month(tx, date(2024, 6, 1))

    def test_no_amounts_never_active(self):
        assert not is_active_in_month(_tx([]), date(2024, 1, 1))


# ── household splits ─────────────────────────────────────────────────────────

class TestSplits:
    def test_equal(self):
        assert split_amount(_household(), Decimal(100), date(2024, 1, 1)) == {ALICE: Decimal(50), BOB: Decimal(50)}

    def test_shares(self):
        household = _household("shares", [_member(ALICE, 3), _member(BOB, 1)])
        split = split_amount(household, Decimal(100), date(2024, 1, 1))
        assert split == {ALICE: Decimal(75), BOB: Decimal(25)}

    def test_zero_shares_fall_back_to_equal(self):
        household = _household("shares", [_member(ALICE, 0), _member(BOB, 0)])
        assert split_amount(household, Decimal(10), date(2024, 1, 1))[ALICE] == Decimal(5)

    def test_income_ratio_uses_income_on_date(self):
        household = _household(
            "income_ratio",
            [
                _member(ALICE, income=[(date(2024, 1, 1), "3000"), (date(2024, 6, 1), "1000")]),
                _member(BOB, income=[(date(2024, 1, 1), "1000")]),
            ],
        )
        assert split_amount(household, Decimal(100), date(2024, 2, 1))[ALICE] == Decimal(75)
        assert split_amount(household, Decimal(100), date(2024, 6, 1))[ALICE] == Decimal(50)

    def test_display_amount_personal_is_full(self):
        tx = _tx([(date(2024, 1, 1), "80")])
        assert display_amount(tx, ALICE, {}, date(2024, 1, 31)) == Decimal(80)

    def test_display_amount_shared_is_users_share(self):
        tx = _tx([(date(2024, 1, 1), "80")], household_id=HOME)
        assert display_amount(tx, ALICE, {HOME: _household()}, date(2024, 1, 31)) == Decimal(40)

    def test_shared_income_is_not_split(self):
        tx = _tx([(date(2024, 1, 1), "80")], type="income", household_id=HOME)
        assert display_amount(tx, ALICE, {HOME: _household()}, date(2024, 1, 31)) == Decimal(80)

    def test_missing_household_counts_zero(self):
        tx = _tx([(date(2024, 1, 1), "80")], household_id=uuid.uuid4())
        assert display_amount(tx, ALICE, {HOME: _household()}, date(2024, 1, 31)) == 0


# ── monthly summary ──────────────────────────────────────────────────────────

CATEGORIES = {
    "default-expense-housing": {"name": "Housing", "icon": "Home", "color": "hsl(var(--chart-1))"},
    "default-expense-food": {"name": "Food", "icon": "Utensils", "color": "hsl(var(--chart-2))"},
}


class TestMonthlySummary:
    def _transactions(self):
        return [
            _tx([(date(2024, 1, 1), "3000")], type="income", name="Salary", classification=None),
            _tx([(date(2024, 1, 1), "1200")], category_id="default-expense-housing", household_id=HOME),
            _tx([(date(2024, 3, 5), "90")], frequency="one-off", category_id="default-expense-food",
                classification="want", name="Dinner"),
            _tx([(date(2024, 3, 1), "20")], category_id="custom-gone", name="Streaming", classification="want"),
        ]

    def test_totals_and_groups(self):
        summary = monthly_summary(
            self._transactions(), {HOME: _household()}, ALICE, date(2024, 3, 1), categories=CATEGORIES
        )
        assert summary.month == date(2024, 3, 1)
        assert summary.income == Decimal(3000)
        assert summary.expenses == Decimal(600 + 90 + 20)
        assert [g.name for g in summary.expense_groups] == ["Housing", "Food", "Uncategorized"]
        housing = summary.expense_groups[0]
        assert housing.icon == "Home"
        assert housing.items[0]["total_amount"] == Decimal(1200)
        assert housing.items[0]["amount"] == Decimal(600)

    def test_classification_grouping(self):
        summary = monthly_summary(
            self._transactions(), {HOME: _household()}, ALICE, date(2024, 3, 1), grouping="classification"
        )
        totals = {g.name: g.total for g in summary.expense_groups}
        assert totals == {"Needs": Decimal(600), "Wants": Decimal(110)}

    def test_no_grouping(self):
        summary = monthly_summary(self._transactions(), {HOME: _household()}, ALICE, date(2024, 3, 1), grouping="none")
        assert [g.name for g in summary.expense_groups] == ["All Expenses"]

    def test_one_off_outside_month_excluded(self):
        summary = monthly_summary(self._transactions(), {HOME: _household()}, ALICE, date(2024, 4, 1))
        assert summary.expenses == Decimal(620)

    def test_savings_only_count_own_contributions(self):
        goal = NS(
            id=uuid.uuid4(),
            name="Holiday",
            contributions=[
                NS(id=uuid.uuid4(), date=date(2024, 3, 2), amount=Decimal(100), user_id=ALICE),
                NS(id=uuid.uuid4(), date=date(2024, 3, 9), amount=Decimal(400), user_id=BOB),
                NS(id=uuid.uuid4(), date=date(2024, 2, 9), amount=Decimal(50), user_id=ALICE),
            ],
        )
        asset = NS(id=uuid.uuid4(), name="Pension", contributions=[NS(id=uuid.uuid4(), date=date(2024, 3, 20), amount=Decimal(250))])
        summary = monthly_summary([], {}, ALICE, date(2024, 3, 1), goals=[goal], assets=[asset], contributor_id=ALICE)
        assert summary.savings == Decimal(350)
        assert [c["name"] for c in summary.contributions] == ['To "Pension"', 'To "Holiday"']

    def test_net_balance(self):
        summary = monthly_summary(
            self._transactions(), {HOME: _household()}, ALICE, date(2024, 3, 1), categories=CATEGORIES
        )
        assert summary.net_balance == Decimal(3000 - 710)


# ── period comparison ────────────────────────────────────────────────────────

class TestCompare:
    def test_category_changes(self):
        transactions = [
            _tx([(date(2024, 1, 1), "100"), (date(2024, 3, 1), "150")], category_id="default-expense-housing"),
            _tx([(date(2024, 3, 10), "40")], frequency="one-off", category_id="default-expense-food", name="Dinner"),
        ]
        a = period_metrics(transactions, {}, ALICE, date(2024, 1, 1), date(2024, 2, 29), CATEGORIES)
        b = period_metrics(transactions, {}, ALICE, date(2024, 3, 1), date(2024, 4, 30), CATEGORIES)
        assert a.total_expenses == Decimal(200)
        assert b.total_expenses == Decimal(340)

        rows = compare_periods(a, b)
        assert [r["category"] for r in rows] == ["Housing", "Food"]
        housing, food = rows
        assert housing["change_abs"] == Decimal(100)
        assert housing["change_percent"] == Decimal("50.00")
        assert food["amount_a"] == 0
        assert food["change_percent"] is None
        assert food["transactions_b"][0]["amount"] == Decimal(40)
        assert food["transactions_a"] == []

    def test_income_totalled_separately(self):
        transactions = [_tx([(date(2024, 1, 1), "1000")], type="income", name="Salary")]
        metrics = period_metrics(transactions, {}, ALICE, date(2024, 1, 1), date(2024, 3, 31), {})
        assert metrics.total_income == Decimal(3000)
        assert metrics.category_totals == {}


# ── cash flow over a range ───────────────────────────────────────────────────

class TestCashflow:
    def _report(self, income_from=date(2024, 1, 1)):
        transactions = [
            _tx([(income_from, "3000")], type="income", name="Salary", classification=None),
            _tx([(date(2024, 1, 1), "1200")], category_id="default-expense-housing", household_id=HOME),
            _tx([(date(2024, 3, 5), "90")], frequency="one-off", category_id="default-expense-food", name="Dinner"),
        ]
        goal = NS(
            id=uuid.uuid4(),
            name="Holiday",
            contributions=[
                NS(id=uuid.uuid4(), date=date(2024, 3, 2), amount=Decimal(100), user_id=ALICE),
                NS(id=uuid.uuid4(), date=date(2024, 3, 3), amount=Decimal(400), user_id=BOB),
            ],
        )
        return cashflow(
            transactions, {HOME: _household()}, ALICE, date(2024, 2, 10), date(2024, 3, 20), CATEGORIES,
            goals=[goal], contributor_id=ALICE,
        )

    def test_one_row_per_month(self):
        feb, mar = self._report().months
        assert (feb.month, mar.month) == (date(2024, 2, 1), date(2024, 3, 1))
        assert (feb.income, feb.expenses, feb.savings) == (Decimal(3000), Decimal(600), 0)
        assert (mar.income, mar.expenses, mar.savings) == (Decimal(3000), Decimal(690), Decimal(100))
        assert feb.net == Decimal(2400)
        assert mar.categories == {"Housing": Decimal(600), "Food": Decimal(90)}

    def test_totals_and_share_of_income(self):
        report = self._report()
        assert report.income == Decimal(6000)
        assert report.expenses == Decimal(1290)
        assert report.savings == Decimal(100)
        assert report.net == Decimal(4610)
        assert report.share_of_income(report.expenses) == Decimal("21.5")

    def test_expense_breakdown_largest_first(self):
        breakdown = self._report().expense_breakdown
        assert [(row["category"], row["value"]) for row in breakdown] == [("Housing", Decimal(1200)), ("Food", Decimal(90))]
        assert breakdown[0]["percent"] == Decimal("93.0")
        assert breakdown[1]["percent"] == Decimal("7.0")

    def test_no_income_has_no_percentages(self):
        report = self._report(income_from=date(2025, 1, 1))
        assert report.income == 0
        assert report.share_of_income(report.expenses) is None


# ── quick edits ──────────────────────────────────────────────────────────────

class TestQuickEdit:
    def test_this_month_only_restores_next_month(self):
        tx = _tx([(date(2024, 1, 1), "100")])
        history = update_this_month_only(tx, date(2024, 3, 1), Decimal(130))
        assert history == [(date(2024, 1, 1), Decimal(100)), (date(2024, 3, 1), Decimal(130)), (date(2024, 4, 1), Decimal(100))]

    def test_this_month_only_keeps_existing_next_month_change(self):
        tx = _tx([(date(2024, 1, 1), "100"), (date(2024, 4, 1), "110")])
        history = update_this_month_only(tx, date(2024, 3, 1), Decimal(130))
        assert history == [(date(2024, 1, 1), Decimal(100)), (date(2024, 3, 1), Decimal(130)), (date(2024, 4, 1), Decimal(110))]

    def test_this_month_only_replaces_changes_inside_month(self):
        tx = _tx([(date(2024, 1, 1), "100"), (date(2024, 3, 15), "120")])
        history = update_this_month_only(tx, date(2024, 3, 1), Decimal(130))
        assert (date(2024, 3, 15), Decimal(120)) not in history
        # The amount in effect at the end of the month carries on
        assert history[-1] == (date(2024, 4, 1), Decimal(120))

    def test_from_month_drops_later_changes(self):
        tx = _tx([(date(2024, 1, 1), "100"), (date(2024, 5, 1), "140")])
        history = update_from_month(tx, date(2024, 3, 1), Decimal(125))
        assert history == [(date(2024, 1, 1), Decimal(100)), (date(2024, 3, 1), Decimal(125))]

    @pytest.mark.parametrize("scope", [update_this_month_only, update_from_month])
    def test_result_is_sorted(self, scope):
        tx = _tx([(date(2024, 6, 1), "90"), (date(2024, 1, 1), "100")])
        history = scope(tx, date(2024, 2, 1), Decimal(5))
        assert history == sorted(history, key=lambda h: h[0])

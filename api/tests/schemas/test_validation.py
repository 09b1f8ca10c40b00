"""
Request-body validation rules enforced by the pydantic schemas.
"""
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.schemas.household import SplitSettingsUpdate
from app.schemas.investment import InvestmentCreate, InvestmentTransactionIn
from app.schemas.savings import ContributionIn, SavingGoalCreate
from app.schemas.transaction import TransactionCreate, TransactionUpdate
from app.schemas.user import PreferencesUpdate, UserCreate, UserProfileUpdate


class TestPassword:
    def test_strong_password_accepted(self):
        assert UserCreate(email="a@example.com", password="Sup3rsecret", full_name="A").password == "Sup3rsecret"

    @pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(ValidationError):
            UserCreate(email="a@example.com", password=password, full_name="A")


class TestPreferences:
    def test_currency_upper_cased(self):
        assert PreferencesUpdate(currency="eur").currency == "EUR"

    def test_unsupported_currency(self):
        with pytest.raises(ValidationError):
            PreferencesUpdate(currency="JPY")

    def test_non_positive_target_clears(self):
        prefs = PreferencesUpdate(net_worth_target=Decimal(0), default_monthly_contribution=Decimal(-5))
        assert prefs.net_worth_target is None
        assert prefs.default_monthly_contribution is None
        assert prefs.model_fields_set == {"net_worth_target", "default_monthly_contribution"}


class TestTransactionCreate:
    def _base(self, **overrides):
        data = {
            "transaction_type": "expense",
            "name": "Rent",
            "amount": "1200",
            "start_date": date(2024, 1, 1),
            "classification": "need",
        }
        data.update(overrides)
        return TransactionCreate(**data)

    def test_expense_needs_classification(self):
        with pytest.raises(ValidationError):
            self._base(classification=None)

    def test_income_drops_classification(self):
        assert self._base(transaction_type="income", classification="want").classification is None

    def test_one_off_drops_end_date(self):
        assert self._base(frequency="one-off", end_date=date(2024, 6, 1)).end_date is None

    def test_end_date_after_start(self):
        with pytest.raises(ValidationError):
            self._base(end_date=date(2024, 1, 1))

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            self._base(amount="0")


class TestPartialUpdates:
    @pytest.mark.parametrize("field", ["name", "frequency"])
    def test_required_transaction_fields_cannot_be_nulled(self, field):
        with pytest.raises(ValidationError):
            TransactionUpdate.model_validate({field: None})

    def test_clearable_transaction_fields_pass_null(self):
        update = TransactionUpdate.model_validate({"end_date": None, "category_id": None, "classification": None})
        assert update.model_dump(exclude_unset=True) == {"end_date": None, "category_id": None, "classification": None}

    def test_omitted_fields_stay_unset(self):
        assert TransactionUpdate.model_validate({"name": "Rent"}).model_dump(exclude_unset=True) == {"name": "Rent"}

    def test_profile_name_cannot_be_nulled(self):
        with pytest.raises(ValidationError):
            UserProfileUpdate.model_validate({"full_name": None})

    def test_empty_profile_update(self):
        assert UserProfileUpdate().model_dump(exclude_unset=True) == {}


class TestSavingGoal:
    def _base(self, **overrides):
        data = {
            "name": "Holiday",
            "target_amount": "2000",
            "start_date": date(2024, 1, 1),
            "target_date": date(2024, 12, 1),
        }
        data.update(overrides)
        return SavingGoalCreate(**data)

    def test_personal_goal_has_no_split(self):
        assert self._base(split_type="contribution").split_type is None

    def test_shared_goal_defaults_to_equal(self):
        assert self._base(sharing="3f0e7c1a-0000-4000-8000-000000000000").split_type == "equal"

    def test_target_date_after_start(self):
        with pytest.raises(ValidationError):
            self._base(target_date=date(2023, 12, 1))

    def test_zero_contribution_rejected(self):
        with pytest.raises(ValidationError):
            ContributionIn(amount="0", date=date(2024, 1, 1))

    def test_withdrawal_allowed(self):
        assert ContributionIn(amount="-50", date=date(2024, 1, 1)).amount == Decimal(-50)


class TestInvestment:
    def test_ticker_upper_cased(self):
        assert InvestmentCreate(ticker=" aapl ", name="Apple").ticker == "AAPL"

    def test_sell_is_negative_shares(self):
        tx = InvestmentTransactionIn(date=date(2024, 1, 1), shares="-2", price="150", currency="usd")
        assert tx.shares == Decimal(-2)
        assert tx.currency == "USD"

    @pytest.mark.parametrize("field,value", [("shares", "0"), ("price", "0"), ("currency", "DOLLAR")])
    def test_invalid_transactions(self, field, value):
        data = {"date": date(2024, 1, 1), "shares": "1", "price": "10", "currency": "USD", field: value}
        with pytest.raises(ValidationError):
            InvestmentTransactionIn(**data)


class TestSplitSettings:
    def test_shares_must_total_above_zero(self):
        with pytest.raises(ValidationError):
            SplitSettingsUpdate(split_type="shares", shares=[])

    def test_equal_needs_no_shares(self):
        assert SplitSettingsUpdate(split_type="equal").shares == []

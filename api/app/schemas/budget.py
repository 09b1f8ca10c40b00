import enum
import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class Grouping(str, enum.Enum):
    none = "none"
    category = "category"
    classification = "classification"


class EditScope(str, enum.Enum):
    this_month = "this_month"
    future = "future"


class QuickEdit(BaseModel):
    """Change a recurring amount from the monthly view."""
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)
    amount: Decimal = Field(gt=0)
    scope: EditScope


class IncomeItem(BaseModel):
    id: uuid.UUID
    name: str
    category_id: str | None
    amount: Decimal


class ExpenseItem(BaseModel):
    id: uuid.UUID
    name: str
    category_id: str | None
    classification: str | None
    sharing: str
    total_amount: Decimal
    amount: Decimal  # the viewing user's share


class ExpenseGroupResponse(BaseModel):
    name: str
    total: Decimal
    icon: str | None = None
    color: str | None = None
    items: list[ExpenseItem]

    model_config = {"from_attributes": True}


class ContributionItem(BaseModel):
    id: uuid.UUID
    name: str
    amount: Decimal
    kind: str  # savings | asset
    target_id: uuid.UUID


class MonthlySummaryResponse(BaseModel):
    month: date
    currency: str
    income: Decimal
    expenses: Decimal
    savings: Decimal
    net_balance: Decimal
    income_items: list[IncomeItem]
    expense_groups: list[ExpenseGroupResponse]
    contributions: list[ContributionItem]


class PeriodRange(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def ordered(self) -> "PeriodRange":
        if self.end < self.start:
            raise ValueError("end must be on or after start")
        return self


class CompareTransaction(BaseModel):
    id: uuid.UUID
    name: str
    amount: Decimal


class CategoryComparison(BaseModel):
    category: str
    amount_a: Decimal
    amount_b: Decimal
    change_abs: Decimal
    change_percent: Decimal | None  # None when period A is zero
    transactions_a: list[CompareTransaction]
    transactions_b: list[CompareTransaction]


class PeriodTotals(BaseModel):
    start: date
    end: date
    total_income: Decimal
    total_expenses: Decimal


class CompareResponse(BaseModel):
    currency: str
    period_a: PeriodTotals
    period_b: PeriodTotals
    categories: list[CategoryComparison]


class CashflowMonthResponse(BaseModel):
    month: date
    income: Decimal
    expenses: Decimal
    savings: Decimal
    net: Decimal
    categories: dict[str, Decimal]  # expense per category name


class CategoryShare(BaseModel):
    category: str
    value: Decimal
    percent: Decimal


class CashflowResponse(BaseModel):
    currency: str
    start: date
    end: date
    income: Decimal
    expenses: Decimal
    savings: Decimal
    net: Decimal
    # Percent of income; None when there was no income
    expenses_percent: Decimal | None
    savings_percent: Decimal | None
    net_percent: Decimal | None
    months: list[CashflowMonthResponse]
    expense_breakdown: list[CategoryShare]

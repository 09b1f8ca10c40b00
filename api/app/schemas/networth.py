import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class HoldingRow(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    kind: str  # asset | savings | investment
    icon: str | None = None
    value: Decimal


class TypeTotal(BaseModel):
    type: str
    icon: str | None = None
    value: Decimal


class LiabilityRow(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    balance: Decimal


class NetWorthResponse(BaseModel):
    as_of: date
    currency: str
    total_assets: Decimal
    assets: Decimal
    savings: Decimal
    investments: Decimal
    liabilities: Decimal
    net_worth: Decimal
    holdings: list[HoldingRow]
    liability_rows: list[LiabilityRow]
    asset_breakdown: list[TypeTotal]
    liability_breakdown: list[TypeTotal]
    target: Decimal | None = None
    target_progress_percent: Decimal | None = None
    monthly_contribution_rate: Decimal | None = None
    estimated_target_date: date | None = None


class HistoryPoint(BaseModel):
    month: date
    net_worth: Decimal


class HistoryResponse(BaseModel):
    currency: str
    points: list[HistoryPoint]


class ProjectionRequest(BaseModel):
    years: int = Field(default=10, ge=1, le=100)
    annual_growth_rate: Decimal = Field(default=Decimal(7), ge=0, le=100)
    monthly_contribution: Decimal | None = Field(default=None, ge=0)  # defaults to saved / trailing rate


class ProjectionPointResponse(BaseModel):
    date: date
    initial_capital: Decimal
    contributions: Decimal
    growth: Decimal
    total: Decimal


class YearRow(BaseModel):
    year: int
    value: Decimal


class ProjectionResponse(BaseModel):
    currency: str
    current_net_worth: Decimal
    monthly_contribution: Decimal
    final_value: Decimal
    total_contributions: Decimal
    total_growth: Decimal
    points: list[ProjectionPointResponse]
    yearly: list[YearRow]
    history: list[HistoryPoint]

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class InvestmentTransactionIn(BaseModel):
    date: date
    shares: Decimal  # negative = sell
    price: Decimal = Field(gt=0)
    currency: str = "USD"

    @field_validator("shares")
    @classmethod
    def non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("shares can't be zero")
        return v

    @field_validator("currency")
    @classmethod
    def currency_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3:
            raise ValueError("currency must be a 3-letter ISO code")
        return v


class InvestmentTransactionResponse(BaseModel):
    id: uuid.UUID
    date: date
    shares: Decimal
    price: Decimal
    currency: str

    model_config = {"from_attributes": True}


class InvestmentCreate(BaseModel):
    ticker: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    transactions: list[InvestmentTransactionIn] = []

    @field_validator("ticker")
    @classmethod
    def upper_ticker(cls, v: str) -> str:
        return v.strip().upper()


class InvestmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)


class InvestmentResponse(BaseModel):
    id: uuid.UUID
    ticker: str
    name: str
    created_at: datetime
    transactions: list[InvestmentTransactionResponse] = []

    model_config = {"from_attributes": True}


class PositionResponse(BaseModel):
    total_shares: Decimal
    total_cost: Decimal
    current_price: Decimal
    current_value: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    currency: str

    model_config = {"from_attributes": True}


class PricePointResponse(BaseModel):
    date: date
    close: Decimal  # USD

    model_config = {"from_attributes": True}


class DividendResponse(BaseModel):
    date: date
    amount_per_share: Decimal  # USD
    shares_held: Decimal
    payout: Decimal  # USD

    model_config = {"from_attributes": True}


class PositionPointResponse(BaseModel):
    month: date
    initial_capital: Decimal
    contributions: Decimal
    growth: Decimal
    total_value: Decimal

    model_config = {"from_attributes": True}


class InvestmentDetailResponse(InvestmentResponse):
    position: PositionResponse
    price_history: list[PricePointResponse] = []
    value_history: list[PositionPointResponse] = []
    dividends: list[DividendResponse] = []
    total_dividends: Decimal = Decimal(0)  # display currency


class SearchResultResponse(BaseModel):
    symbol: str
    name: str
    type: str
    region: str
    currency: str

    model_config = {"from_attributes": True}


class QuoteResponse(BaseModel):
    symbol: str
    price: Decimal
    change: Decimal
    change_percent: Decimal

    model_config = {"from_attributes": True}

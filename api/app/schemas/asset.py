import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


def _currency_code(v: str) -> str:
    v = v.strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("currency must be a 3-letter ISO code")
    return v


class ValueChangeIn(BaseModel):
    value: Decimal = Field(ge=0)
    date: date


class ValueChangeResponse(BaseModel):
    id: uuid.UUID
    value: Decimal
    date: date

    model_config = {"from_attributes": True}


class AssetContributionIn(BaseModel):
    amount: Decimal
    date: date

    @field_validator("amount")
    @classmethod
    def non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("amount can't be zero")
        return v


class AssetContributionResponse(BaseModel):
    id: uuid.UUID
    amount: Decimal
    date: date

    model_config = {"from_attributes": True}


class AssetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=100)
    currency: str = "USD"
    initial_value: Decimal = Field(default=Decimal(0), ge=0)
    value_date: date | None = None  # defaults to today

    @field_validator("currency")
    @classmethod
    def currency_code(cls, v: str) -> str:
        return _currency_code(v)


class AssetUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: str | None = Field(default=None, min_length=1, max_length=100)
    currency: str | None = None

    @field_validator("currency")
    @classmethod
    def currency_code(cls, v: str | None) -> str | None:
        return _currency_code(v) if v is not None else v


class AssetResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    currency: str
    created_at: datetime
    current_value: Decimal = Decimal(0)  # native currency
    value_history: list[ValueChangeResponse] = []
    contributions: list[AssetContributionResponse] = []

    model_config = {"from_attributes": True}

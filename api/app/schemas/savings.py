import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator


class ContributionIn(BaseModel):
    amount: Decimal  # negative = withdrawal
    date: date

    @field_validator("amount")
    @classmethod
    def non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("amount can't be zero")
        return v


class ContributionResponse(BaseModel):
    id: uuid.UUID
    amount: Decimal
    date: date
    user_id: uuid.UUID | None
    user_name: str

    model_config = {"from_attributes": True}


class SavingGoalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    target_amount: Decimal = Field(gt=0)
    start_date: date
    target_date: date
    sharing: str = "personal"  # "personal" or a household id
    split_type: str | None = None  # equal | contribution, shared goals only
    initial_contribution: Decimal | None = None

    @field_validator("split_type")
    @classmethod
    def known_split(cls, v: str | None) -> str | None:
        if v is not None and v not in ("equal", "contribution"):
            raise ValueError("split_type must be 'equal' or 'contribution'")
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "SavingGoalCreate":
        if self.target_date <= self.start_date:
            raise ValueError("target_date must be after start_date")
        if self.sharing == "personal":
            self.split_type = None
        elif self.split_type is None:
            self.split_type = "equal"
        return self


class SavingGoalUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    target_amount: Decimal | None = Field(default=None, gt=0)
    start_date: date | None = None
    target_date: date | None = None
    sharing: str | None = None
    split_type: str | None = None

    @field_validator("split_type")
    @classmethod
    def known_split(cls, v: str | None) -> str | None:
        if v is not None and v not in ("equal", "contribution"):
            raise ValueError("split_type must be 'equal' or 'contribution'")
        return v


class SavingGoalResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    target_amount: Decimal
    start_date: date
    target_date: date
    sharing: str
    split_type: str | None
    created_at: datetime
    current_amount: Decimal = Decimal(0)
    progress_percent: Decimal = Decimal(0)
    contributions: list[ContributionResponse] = []

    model_config = {"from_attributes": True}

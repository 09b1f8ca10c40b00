import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator


class TransactionType(str, enum.Enum):
    income = "income"
    expense = "expense"


class Frequency(str, enum.Enum):
    one_off = "one-off"
    recurring = "recurring"


class Classification(str, enum.Enum):
    need = "need"
    want = "want"


class AmountChangeIn(BaseModel):
    amount: Decimal = Field(gt=0)
    date: date


class AmountChangeResponse(BaseModel):
    id: uuid.UUID
    amount: Decimal
    date: date

    model_config = {"from_attributes": True}


class TransactionCreate(BaseModel):
    transaction_type: TransactionType
    name: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0)
    start_date: date
    frequency: Frequency = Frequency.recurring
    end_date: date | None = None
    category_id: str | None = None
    classification: Classification | None = None
    sharing: str = "personal"  # "personal" or a household id

    @model_validator(mode="after")
    def validate_entry(self) -> "TransactionCreate":
        if self.transaction_type == TransactionType.expense and self.classification is None:
            raise ValueError("classification is required for expenses")
        if self.transaction_type == TransactionType.income:
            self.classification = None
        if self.frequency == Frequency.one_off:
            self.end_date = None
        elif self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class TransactionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    frequency: Frequency | None = None
    end_date: date | None = None
    category_id: str | None = None
    classification: Classification | None = None
    sharing: str | None = None

    @field_validator("name", "frequency")
    @classmethod
    def not_null(cls, v):
        # end_date, category_id and classification may be cleared; these may not
        if v is None:
            raise ValueError("can't be null")
        return v


class TransactionResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    transaction_type: str
    name: str
    frequency: str
    end_date: date | None
    category_id: str | None
    classification: str | None
    sharing: str
    created_at: datetime
    current_amount: Decimal = Decimal(0)
    amounts: list[AmountChangeResponse] = []

    model_config = {"from_attributes": True}

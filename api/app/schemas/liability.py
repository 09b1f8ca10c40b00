import enum
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class LiabilityType(str, enum.Enum):
    credit_card = "credit_card"
    loan = "loan"
    mortgage = "mortgage"
    other = "other"


class LiabilityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: LiabilityType
    current_balance: Decimal = Field(ge=0)
    apr: Decimal = Field(default=Decimal(0), ge=0, le=100)


class LiabilityUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: LiabilityType | None = None
    current_balance: Decimal | None = Field(default=None, ge=0)
    apr: Decimal | None = Field(default=None, ge=0, le=100)


class LiabilityResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    current_balance: Decimal
    apr: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, model_validator


class SplitType(str, enum.Enum):
    equal = "equal"
    shares = "shares"
    income_ratio = "income_ratio"


class HouseholdCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class HouseholdRename(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class InviteCreate(BaseModel):
    email: EmailStr


class MemberRename(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class MemberShareIn(BaseModel):
    user_id: uuid.UUID
    share: Decimal = Field(ge=0)


class SplitSettingsUpdate(BaseModel):
    split_type: SplitType
    shares: list[MemberShareIn] = []

    @model_validator(mode="after")
    def shares_total(self) -> "SplitSettingsUpdate":
        if self.split_type == SplitType.shares and sum(s.share for s in self.shares) <= 0:
            raise ValueError("Total shares must be greater than zero")
        return self


class IncomeChangeIn(BaseModel):
    amount: Decimal = Field(ge=0)
    date: date


class IncomeChangeResponse(BaseModel):
    id: uuid.UUID
    amount: Decimal
    date: date

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    email: str
    share: Decimal
    joined_at: datetime
    income_history: list[IncomeChangeResponse] = []

    model_config = {"from_attributes": True}


class InvitationResponse(BaseModel):
    id: uuid.UUID
    household_id: uuid.UUID
    invited_email: str
    invited_by: uuid.UUID
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MyInvitationResponse(InvitationResponse):
    household_name: str
    inviter_name: str


class EventResponse(BaseModel):
    id: uuid.UUID
    actor_id: uuid.UUID | None
    actor_name: str
    message: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class HouseholdResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    split_type: str
    created_at: datetime
    members: list[MemberResponse] = []

    model_config = {"from_attributes": True}


class HouseholdSummary(HouseholdResponse):
    is_owner: bool
    monthly_shared_expenses: Decimal
    shared_goal_count: int


class SharedExpense(BaseModel):
    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    amount: Decimal
    split: dict[uuid.UUID, Decimal]


class SharedGoal(BaseModel):
    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    target_amount: Decimal
    current_amount: Decimal
    split_type: str | None
    contributed_by: dict[uuid.UUID, Decimal]


class HouseholdDetail(HouseholdResponse):
    invitations: list[InvitationResponse] = []
    events: list[EventResponse] = []
    shared_expenses: list[SharedExpense] = []
    shared_goals: list[SharedGoal] = []
    member_totals: dict[uuid.UUID, Decimal] = {}

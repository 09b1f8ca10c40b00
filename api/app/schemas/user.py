import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.services.currency import SUPPORTED_CURRENCIES


def _validate_password(v: str) -> str:
    errors = []
    if len(v) < 8:
        errors.append("at least 8 characters")
    if not any(c.isupper() for c in v):
        errors.append("one uppercase letter")
    if not any(c.islower() for c in v):
        errors.append("one lowercase letter")
    if not any(c.isdigit() for c in v):
        errors.append("one digit")
    if errors:
        raise ValueError("Password must contain: " + ", ".join(errors))
    return v


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _validate_password(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class GoogleLogin(BaseModel):
    id_token: str


class VerifyEmail(BaseModel):
    token: str


class ResendVerification(BaseModel):
    email: EmailStr


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    auth_provider: str
    is_active: bool
    is_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)

    @field_validator("full_name")
    @classmethod
    def not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("full_name can't be null")
        return v


class UserPasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _validate_password(v)


class AccountDelete(BaseModel):
    password: str | None = None  # required for password accounts


# ─── UI preferences ────────────────────────────────────────────────────────────

class PreferencesResponse(BaseModel):
    currency: str
    accent_color_name: str
    accent_color_primary: str
    accent_color_foreground: str
    expand_sidebar_menus: bool
    net_worth_target: Decimal | None
    default_monthly_contribution: Decimal | None

    model_config = {"from_attributes": True}


class PreferencesUpdate(BaseModel):
    """Partial update. A target or default contribution of null / ≤ 0 clears it."""
    currency: str | None = None
    accent_color_name: str | None = Field(default=None, max_length=50)
    accent_color_primary: str | None = Field(default=None, max_length=40)
    accent_color_foreground: str | None = Field(default=None, max_length=40)
    expand_sidebar_menus: bool | None = None
    net_worth_target: Decimal | None = None
    default_monthly_contribution: Decimal | None = None

    @field_validator("currency")
    @classmethod
    def supported_currency(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.upper()
        if v not in SUPPORTED_CURRENCIES:
            raise ValueError(f"currency must be one of {', '.join(SUPPORTED_CURRENCIES)}")
        return v

    @field_validator("net_worth_target", "default_monthly_contribution")
    @classmethod
    def non_positive_clears(cls, v: Decimal | None) -> Decimal | None:
        return v if v is not None and v > 0 else None

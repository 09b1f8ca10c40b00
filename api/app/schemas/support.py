from pydantic import BaseModel, EmailStr, Field


class SupportRequest(BaseModel):
    topic: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=10, max_length=5000)
    email: EmailStr | None = None  # defaults to the account email


class SupportResponse(BaseModel):
    success: bool
    message: str

from pydantic import BaseModel, Field, field_validator

from app.services.categories import KINDS


class CategoryCreate(BaseModel):
    kind: str
    name: str = Field(min_length=1, max_length=100)
    icon: str = Field(default="Paperclip", max_length=50)
    color: str = Field(default="hsl(0 0% 65%)", max_length=40)

    @field_validator("kind")
    @classmethod
    def known_kind(cls, v: str) -> str:
        if v not in KINDS:
            raise ValueError(f"kind must be one of {', '.join(KINDS)}")
        return v


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    icon: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=40)


class CategoryResponse(BaseModel):
    id: str  # UUID for custom categories, "default-..." for built-ins
    kind: str
    name: str
    icon: str
    color: str
    is_default: bool

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str] = mapped_column(String(255))
    auth_provider: Mapped[str] = mapped_column(String(20), default="password")  # password | google
    provider_subject: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    # ─── UI preferences ───────────────────────────
    currency: Mapped[str] = mapped_column(String(3), default="USD", server_default="USD")
    accent_color_name: Mapped[str] = mapped_column(String(50), default="Default Blue")
    accent_color_primary: Mapped[str] = mapped_column(String(40), default="217.2 91.2% 59.8%")
    accent_color_foreground: Mapped[str] = mapped_column(String(40), default="210 40% 98%")
    expand_sidebar_menus: Mapped[bool] = mapped_column(Boolean, default=False)
    net_worth_target: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    default_monthly_contribution: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email.split("@")[0]

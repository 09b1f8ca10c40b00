import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Transaction(Base):
    """A budgeted income or expense, either one-off or recurring monthly."""
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    household_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("households.id", ondelete="SET NULL"), index=True, nullable=True
    )
    transaction_type: Mapped[str] = mapped_column(String(10))  # income | expense
    name: Mapped[str] = mapped_column(String(255))
    frequency: Mapped[str] = mapped_column(String(10))  # one-off | recurring
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Either a custom category's UUID or a built-in "default-..." id
    category_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    classification: Mapped[str | None] = mapped_column(String(10), nullable=True)  # need | want
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )

    amounts: Mapped[list["AmountChange"]] = relationship(
        cascade="all, delete-orphan", lazy="selectin", order_by="AmountChange.date"
    )

    @property
    def sharing(self) -> str:
        return str(self.household_id) if self.household_id else "personal"


class AmountChange(Base):
    """The amount in effect from `date` onward (until the next change)."""
    __tablename__ = "amount_changes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("transactions.id", ondelete="CASCADE"), index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    date: Mapped[date] = mapped_column(Date)

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

EVENT_LOG_LIMIT = 15


class Household(Base):
    """A sharing scope for goals and income/expense entries."""
    __tablename__ = "households"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    split_type: Mapped[str] = mapped_column(String(20), default="equal")  # equal | shares | income_ratio
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )

    # Children load with selectin; async sessions cannot lazy-load
    members: Mapped[list["HouseholdMember"]] = relationship(
        back_populates="household",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="HouseholdMember.joined_at",
    )
    invitations: Mapped[list["Invitation"]] = relationship(
        back_populates="household",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    events: Mapped[list["HouseholdEvent"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="HouseholdEvent.timestamp.desc()",
    )

    @property
    def member_ids(self) -> list[uuid.UUID]:
        return [m.user_id for m in self.members]

    @property
    def pending_member_emails(self) -> list[str]:
        return [i.invited_email for i in self.invitations if i.status == "pending"]

    def member(self, user_id: uuid.UUID) -> "HouseholdMember | None":
        return next((m for m in self.members if m.user_id == user_id), None)


class HouseholdMember(Base):
    __tablename__ = "household_members"
    __table_args__ = (UniqueConstraint("household_id", "user_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    household_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("households.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(320))
    share: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)  # used by split_type="shares"
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )

    household: Mapped["Household"] = relationship(back_populates="members")
    income_history: Mapped[list["MemberIncomeChange"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MemberIncomeChange.date",
    )


class MemberIncomeChange(Base):
    """Dated income figure for a member, used by split_type="income_ratio"."""
    __tablename__ = "member_income_changes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("household_members.id", ondelete="CASCADE"), index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    date: Mapped[date] = mapped_column(Date)


class Invitation(Base):
    __tablename__ = "invitations"
    __table_args__ = (UniqueConstraint("household_id", "invited_email"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    household_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("households.id", ondelete="CASCADE"), index=True
    )
    invited_email: Mapped[str] = mapped_column(String(320), index=True)
    invited_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE")
    )
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | declined
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )

    household: Mapped["Household"] = relationship(back_populates="invitations")


class HouseholdEvent(Base):
    """Activity log entry; only the newest EVENT_LOG_LIMIT rows are kept per household."""
    __tablename__ = "household_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    household_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("households.id", ondelete="CASCADE"), index=True
    )
    actor_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    actor_name: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

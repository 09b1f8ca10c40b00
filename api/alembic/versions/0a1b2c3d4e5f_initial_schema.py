"""initial_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0a1b2c3d4e5f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.UUID(), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def upgrade() -> None:
    # ─── Users ────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("auth_provider", sa.String(length=20), nullable=False),
        sa.Column("provider_subject", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("currency", sa.String(length=3), server_default="USD", nullable=False),
        sa.Column("accent_color_name", sa.String(length=50), nullable=False),
        sa.Column("accent_color_primary", sa.String(length=40), nullable=False),
        sa.Column("accent_color_foreground", sa.String(length=40), nullable=False),
        sa.Column("expand_sidebar_menus", sa.Boolean(), nullable=False),
        sa.Column("net_worth_target", sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column("default_monthly_contribution", sa.Numeric(precision=14, scale=2), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_subject"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    # ─── Households ───────────────────────────────
    op.create_table(
        "households",
        _id(),
        sa.Column("owner_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("split_type", sa.String(length=20), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_households_owner_id"), "households", ["owner_id"], unique=False)

    op.create_table(
        "household_members",
        _id(),
        sa.Column("household_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("share", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("household_id", "user_id"),
    )
    op.create_index(op.f("ix_household_members_household_id"), "household_members", ["household_id"], unique=False)
    op.create_index(op.f("ix_household_members_user_id"), "household_members", ["user_id"], unique=False)

    op.create_table(
        "member_income_changes",
        _id(),
        sa.Column("member_id", sa.UUID(), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(["member_id"], ["household_members.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_member_income_changes_member_id"), "member_income_changes", ["member_id"], unique=False)

    op.create_table(
        "invitations",
        _id(),
        sa.Column("household_id", sa.UUID(), nullable=False),
        sa.Column("invited_email", sa.String(length=320), nullable=False),
        sa.Column("invited_by", sa.UUID(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("household_id", "invited_email"),
    )
    op.create_index(op.f("ix_invitations_household_id"), "invitations", ["household_id"], unique=False)
    op.create_index(op.f("ix_invitations_invited_email"), "invitations", ["invited_email"], unique=False)

    op.create_table(
        "household_events",
        _id(),
        sa.Column("household_id", sa.UUID(), nullable=False),
        sa.Column("actor_id", sa.UUID(), nullable=True),
        sa.Column("actor_name", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_household_events_household_id"), "household_events", ["household_id"], unique=False)
    op.create_index(op.f("ix_household_events_timestamp"), "household_events", ["timestamp"], unique=False)

    # ─── Categories ───────────────────────────────
    op.create_table(
        "categories",
        _id(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("icon", sa.String(length=50), nullable=False),
        sa.Column("color", sa.String(length=40), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_categories_user_id"), "categories", ["user_id"], unique=False)

    # ─── Assets ───────────────────────────────────
    op.create_table(
        "assets",
        _id(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_assets_user_id"), "assets", ["user_id"], unique=False)

    for table in ("asset_value_changes", "asset_contributions"):
        value_column = "value" if table == "asset_value_changes" else "amount"
        op.create_table(
            table,
            _id(),
            sa.Column("asset_id", sa.UUID(), nullable=False),
            sa.Column(value_column, sa.Numeric(precision=14, scale=2), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.ForeignKeyConstraint(["asset_id"], ["assets.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f(f"ix_{table}_asset_id"), table, ["asset_id"], unique=False)

    # ─── Liabilities ──────────────────────────────
    op.create_table(
        "liabilities",
        _id(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("current_balance", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("apr", sa.Numeric(precision=6, scale=3), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_liabilities_user_id"), "liabilities", ["user_id"], unique=False)

    # ─── Investments ──────────────────────────────
    op.create_table(
        "investments",
        _id(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("ticker", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_investments_user_id"), "investments", ["user_id"], unique=False)

    op.create_table(
        "investment_transactions",
        _id(),
        sa.Column("investment_id", sa.UUID(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("shares", sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column("price", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.ForeignKeyConstraint(["investment_id"], ["investments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_investment_transactions_investment_id"), "investment_transactions", ["investment_id"], unique=False)
    op.create_index(op.f("ix_investment_transactions_date"), "investment_transactions", ["date"], unique=False)

    # ─── Savings goals ────────────────────────────
    op.create_table(
        "saving_goals",
        _id(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("household_id", sa.UUID(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("target_amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("target_date", sa.Date(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("split_type", sa.String(length=20), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_saving_goals_user_id"), "saving_goals", ["user_id"], unique=False)
    op.create_index(op.f("ix_saving_goals_household_id"), "saving_goals", ["household_id"], unique=False)

    op.create_table(
        "saving_contributions",
        _id(),
        sa.Column("goal_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(["goal_id"], ["saving_goals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_saving_contributions_goal_id"), "saving_contributions", ["goal_id"], unique=False)

    # ─── Budget entries ───────────────────────────
    op.create_table(
        "transactions",
        _id(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("household_id", sa.UUID(), nullable=True),
        sa.Column("transaction_type", sa.String(length=10), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("frequency", sa.String(length=10), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("category_id", sa.String(length=64), nullable=True),
        sa.Column("classification", sa.String(length=10), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["household_id"], ["households.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_transactions_user_id"), "transactions", ["user_id"], unique=False)
    op.create_index(op.f("ix_transactions_household_id"), "transactions", ["household_id"], unique=False)

    op.create_table(
        "amount_changes",
        _id(),
        sa.Column("transaction_id", sa.UUID(), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(["transaction_id"], ["transactions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_amount_changes_transaction_id"), "amount_changes", ["transaction_id"], unique=False)


def downgrade() -> None:
    for table in (
        "amount_changes",
        "transactions",
        "saving_contributions",
        "saving_goals",
        "investment_transactions",
        "investments",
        "liabilities",
        "asset_contributions",
        "asset_value_changes",
        "assets",
        "categories",
        "household_events",
        "invitations",
        "member_income_changes",
        "household_members",
        "households",
        "users",
    ):
        op.drop_table(table)

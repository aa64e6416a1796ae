"""Initial schema for Premium Desk."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


value_effect = sa.Enum("Credit", "Debit", "None", name="value_effect")


def upgrade() -> None:
    op.create_table(
        "closed_positions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("symbol", sa.String(length=20), nullable=False),
        sa.Column("grouping_key", sa.String(length=96), nullable=False, unique=True),
        sa.Column("total_shares", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("total_proceeds", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("realized_pl", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("total_option_premium", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("total_return", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("return_percentage", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("first_transaction_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_transaction_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_option_contracts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_option_transactions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("equity_transactions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_cost_basis", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("days_held", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_closed_positions_symbol", "closed_positions", ["symbol"])

    op.create_table(
        "transactions_history",
        sa.Column("transaction_id", sa.String(length=64), primary_key=True),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("transaction_type", sa.String(length=64), nullable=False),
        sa.Column("instrument_type", sa.String(length=32), nullable=True),
        sa.Column("action", sa.String(length=32), nullable=True),
        sa.Column("symbol", sa.String(length=64), nullable=True),
        sa.Column("underlying_symbol", sa.String(length=20), nullable=True),
        sa.Column("quantity", sa.Numeric(18, 4), nullable=True),
        sa.Column("price", sa.Numeric(18, 6), nullable=True),
        sa.Column("value", sa.Numeric(18, 6), nullable=True),
        sa.Column("value_effect", value_effect, nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "closed_position_id",
            sa.Integer(),
            sa.ForeignKey("closed_positions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_transactions_history_executed_at", "transactions_history", ["executed_at"])
    op.create_index(
        "ix_transactions_history_underlying_executed",
        "transactions_history",
        ["underlying_symbol", "executed_at"],
    )

    op.create_table(
        "analysis_results",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("symbol", sa.String(length=20), nullable=False, unique=True),
        sa.Column("current_price", sa.Numeric(18, 4), nullable=True),
        sa.Column("stock_bid", sa.Numeric(18, 4), nullable=True),
        sa.Column("stock_ask", sa.Numeric(18, 4), nullable=True),
        sa.Column("stock_spread", sa.Numeric(18, 4), nullable=True),
        sa.Column("option_symbol", sa.String(length=64), nullable=True),
        sa.Column("option_strike_price", sa.Numeric(18, 4), nullable=True),
        sa.Column("option_bid", sa.Numeric(18, 4), nullable=True),
        sa.Column("option_ask", sa.Numeric(18, 4), nullable=True),
        sa.Column("option_mid_price", sa.Numeric(18, 4), nullable=True),
        sa.Column("option_mid_percent", sa.Numeric(18, 6), nullable=True),
        sa.Column("option_expiration_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("analyzed_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "progress_states",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="start"),
        sa.Column("current", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("symbol", sa.String(length=20), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("progress_states")
    op.drop_table("analysis_results")
    op.drop_index("ix_transactions_history_underlying_executed", table_name="transactions_history")
    op.drop_index("ix_transactions_history_executed_at", table_name="transactions_history")
    op.drop_table("transactions_history")
    value_effect.drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_closed_positions_symbol", table_name="closed_positions")
    op.drop_table("closed_positions")

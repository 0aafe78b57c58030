"""order slots, customer balances, collection log

Revision ID: 0001
Revises:
Create Date: 2024-01-05

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    order_shift = sa.Enum("AM", "PM", name="order_shift")

    op.create_table(
        "order_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("shift", order_shift, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("customer_id", "date", "shift", name="uq_order_slot_customer_date_shift"),
    )
    op.create_index("ix_order_slot_customer_date", "order_slots", ["customer_id", "date"])

    op.create_table(
        "customer_balances",
        sa.Column("customer_id", sa.String(64), primary_key=True),
        sa.Column("amount_due_cents", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_due_cents >= 0", name="ck_customer_balance_non_negative"),
    )

    op.create_table(
        "collection_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("resulting_due_cents", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_collection_tx_customer_created", "collection_transactions", ["customer_id", "created_at"])


def downgrade():
    op.drop_index("ix_collection_tx_customer_created", table_name="collection_transactions")
    op.drop_table("collection_transactions")
    op.drop_table("customer_balances")
    op.drop_index("ix_order_slot_customer_date", table_name="order_slots")
    op.drop_table("order_slots")
    sa.Enum(name="order_shift").drop(op.get_bind(), checkfirst=True)

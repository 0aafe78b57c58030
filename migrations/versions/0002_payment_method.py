"""collection log: payment method

Revision ID: 0002
Revises: 0001
Create Date: 2024-02-12

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("collection_transactions") as batch:
        batch.add_column(sa.Column("payment_method", sa.String(16), nullable=False, server_default="cash"))


def downgrade():
    with op.batch_alter_table("collection_transactions") as batch:
        batch.drop_column("payment_method")

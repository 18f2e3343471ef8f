"""create secret_events ledger

Revision ID: 20250101_000001
Revises:
Create Date: 2025-01-01 00:00:01
"""

import sqlalchemy as sa
from alembic import op

revision = "20250101_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "secret_events",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True, autoincrement=True),
        sa.Column("realm", sa.String(length=255), nullable=False),
        sa.Column("client_id", sa.String(length=255), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("secret_last4", sa.String(length=4), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_secret_events_realm_client_actor",
        "secret_events",
        ["realm", "client_id", "created_by"],
    )


def downgrade() -> None:
    op.drop_index("ix_secret_events_realm_client_actor", table_name="secret_events")
    op.drop_table("secret_events")

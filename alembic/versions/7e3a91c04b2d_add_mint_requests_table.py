"""add mint_requests table

Revision ID: 7e3a91c04b2d
Revises:
Create Date: 2026-02-14 11:02:51.447120

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '7e3a91c04b2d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "mint_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("theme", sa.String(length=32), nullable=False),
        sa.Column("rarity", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column("run_id", sa.String(length=128), nullable=True),
        sa.Column("run_status", sa.String(length=32), nullable=True),
        sa.Column("transaction_hash", sa.String(length=66), nullable=True),
        sa.Column("block_number", sa.String(length=32), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("metadata_hash", sa.String(length=128), nullable=True),
        sa.Column("reply_text", sa.Text(), nullable=True),
        sa.Column("credits", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_code", sa.String(length=64), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_mint_requests_wallet_address", "mint_requests", ["wallet_address"])
    op.create_index("idx_mint_requests_status_updated", "mint_requests", ["status", "updated_at"])


def downgrade() -> None:
    op.drop_index("idx_mint_requests_status_updated", table_name="mint_requests")
    op.drop_index("ix_mint_requests_wallet_address", table_name="mint_requests")
    op.drop_table("mint_requests")

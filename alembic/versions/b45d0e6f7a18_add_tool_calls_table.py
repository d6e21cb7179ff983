"""add tool_calls table

Revision ID: b45d0e6f7a18
Revises: 7e3a91c04b2d
Create Date: 2026-02-14 11:20:07.902311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'b45d0e6f7a18'
down_revision: Union[str, Sequence[str], None] = '7e3a91c04b2d'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tool_calls",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("mint_request_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tool_call_id", sa.String(length=128), nullable=False),
        sa.Column("tool_name", sa.String(length=64), nullable=False),
        sa.Column("request", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("response", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["mint_request_id"], ["mint_requests.id"], ondelete="CASCADE"),
    )

    op.create_index("ix_tool_calls_mint_request_id", "tool_calls", ["mint_request_id"])
    op.create_index(
        "idx_tool_calls_tool_name_started_at",
        "tool_calls",
        ["tool_name", "started_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_tool_calls_tool_name_started_at", table_name="tool_calls")
    op.drop_index("ix_tool_calls_mint_request_id", table_name="tool_calls")
    op.drop_table("tool_calls")

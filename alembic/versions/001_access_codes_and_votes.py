"""Initial migration: bathroom_codes and votes tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "bathroom_codes",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(10), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("latitude", sa.Double, nullable=False),
        sa.Column("longitude", sa.Double, nullable=False),
        sa.Column("vote_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("device_id", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_bathroom_codes_device_id", "bathroom_codes", ["device_id"])
    op.create_index("ix_bathroom_codes_lat_lng", "bathroom_codes", ["latitude", "longitude"])

    op.create_table(
        "votes",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "bathroom_code_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("bathroom_codes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("device_id", sa.String(64), nullable=False),
        sa.Column("vote_value", sa.SmallInteger, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("bathroom_code_id", "device_id", name="uq_vote_code_device"),
        sa.CheckConstraint("vote_value IN (1, -1)", name="ck_vote_value"),
    )
    op.create_index("ix_votes_bathroom_code_id", "votes", ["bathroom_code_id"])


def downgrade() -> None:
    op.drop_table("votes")
    op.drop_table("bathroom_codes")

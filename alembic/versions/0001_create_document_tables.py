"""create document tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "prompts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("contract_type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_prompts_contract_type", "prompts", ["contract_type"])

    op.create_table(
        "docs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("template", sa.String(length=50), nullable=False),
        sa.Column("example", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("template", name="uq_docs_template"),
    )


def downgrade() -> None:
    op.drop_table("docs")
    op.drop_index("ix_prompts_contract_type", table_name="prompts")
    op.drop_table("prompts")

"""create notices and members tables

Revision ID: 0001_create_notices
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_create_notices"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Author mirror; rows are owned by the member service
    op.create_table(
        "members",
        sa.Column("member_no", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("member_name", sa.String(50), nullable=False),
        sa.PrimaryKeyConstraint("member_no"),
    )

    op.create_table(
        "notices",
        sa.Column(
            "notice_no",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        sa.Column("member_no", sa.BigInteger(), nullable=False),
        sa.Column("notice_title", sa.String(255), nullable=False),
        sa.Column("notice_content", sa.Text(), nullable=False),
        sa.Column("is_fixed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("notice_no"),
    )
    op.create_index("ix_notices_member_no", "notices", ["member_no"])
    op.create_index("ix_notices_fixed_created", "notices", ["is_fixed", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_notices_fixed_created", table_name="notices")
    op.drop_index("ix_notices_member_no", table_name="notices")
    op.drop_table("notices")
    op.drop_table("members")

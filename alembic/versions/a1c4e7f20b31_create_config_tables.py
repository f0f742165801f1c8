"""create config and tier override tables

Revision ID: a1c4e7f20b31
Revises:
Create Date: 2026-10-05 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7f20b31"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "config_documents",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("value", postgresql.JSONB(), nullable=False),
        sa.Column(
            "modified_by", sa.String(255), nullable=False, server_default="system"
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "key IN ('risk_rules', 'priority_scoring')",
            name="ck_config_document_key",
        ),
    )

    op.create_table(
        "account_tier_overrides",
        sa.Column("account_id", sa.String(18), primary_key=True),
        sa.Column("tier", sa.String(20), nullable=False),
        sa.Column("reason", sa.Text()),
        sa.Column("overridden_by", sa.String(255), nullable=False),
        sa.Column(
            "overridden_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "tier IN ('hot', 'warm', 'cool', 'cold')",
            name="ck_account_tier_override_tier",
        ),
    )


def downgrade() -> None:
    op.drop_table("account_tier_overrides")
    op.drop_table("config_documents")

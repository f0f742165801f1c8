"""seed default config documents

Revision ID: b2d5f8a31c42
Revises: a1c4e7f20b31
Create Date: 2026-10-05 09:30:00.000000

Inserts the default risk rules and priority-scoring configuration into
``config_documents`` when they are absent.  Uses INSERT … WHERE NOT
EXISTS so the migration is fully idempotent.

The values are derived from ``crm_overlay.core.default_config``.
Do NOT edit values here directly; update that module instead.
"""

from typing import Sequence, Union

import json
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "b2d5f8a31c42"
down_revision: Union[str, None] = "a1c4e7f20b31"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Import at migration-generation time so values stay in sync.
from crm_overlay.core.default_config import (  # noqa: E402
    DEFAULT_PRIORITY_SCORING,
    DEFAULT_RISK_RULES,
)

_DOCUMENTS = {
    "risk_rules": DEFAULT_RISK_RULES,
    "priority_scoring": DEFAULT_PRIORITY_SCORING,
}


def upgrade() -> None:
    for key, value in _DOCUMENTS.items():
        value_json = json.dumps(value).replace("'", "''")

        op.execute(
            f"""
            INSERT INTO config_documents (key, value, modified_by)
            SELECT '{key}', '{value_json}'::jsonb, 'system'
            WHERE NOT EXISTS (
                SELECT 1 FROM config_documents WHERE key = '{key}'
            );
            """
        )


def downgrade() -> None:
    # Only remove documents nobody has edited since seeding
    for key in _DOCUMENTS:
        op.execute(
            f"DELETE FROM config_documents WHERE key = '{key}' AND modified_by = 'system';"
        )

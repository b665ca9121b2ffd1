"""reconcile vote counts

Revision ID: 8e4d07c5a1b9
Revises: 3c9a61f2b7d4
Create Date: 2025-08-24 14:28:23.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8e4d07c5a1b9"
down_revision: Union[str, Sequence[str], None] = "3c9a61f2b7d4"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Reset every stored count to the number of ledger rows."""
    op.execute(
        """
        UPDATE features
        SET vote_count = (
            SELECT COUNT(*) FROM votes WHERE votes.feature_id = features.id
        )
        """
    )


def downgrade() -> None:
    """Data repair only; nothing to undo."""

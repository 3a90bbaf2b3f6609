"""init

Revision ID: 4c2a9e1d7b35
Revises: 
Create Date: 2026-10-19 09:12:41.302118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c2a9e1d7b35'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    profile_views = op.create_table(
        "profile_views",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("count", sa.BigInteger(), nullable=False),
    )
    op.bulk_insert(profile_views, [{"id": 1, "count": 0}])

    op.create_table(
        "user_views",
        sa.Column("user_key", sa.String(length=255), primary_key=True, nullable=False),
        sa.Column("count", sa.BigInteger(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("user_views")
    op.drop_table("profile_views")

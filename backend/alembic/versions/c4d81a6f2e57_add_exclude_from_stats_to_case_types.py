"""add exclude_from_stats to shop_case_types

Revision ID: c4d81a6f2e57
Revises: 7b2e4c91d0a3
Create Date: 2026-10-19 15:40:02.118734

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c4d81a6f2e57'
down_revision: Union[str, None] = '7b2e4c91d0a3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        'shop_case_types',
        sa.Column('exclude_from_stats', sa.Boolean(), server_default='false', nullable=False),
    )


def downgrade() -> None:
    op.drop_column('shop_case_types', 'exclude_from_stats')

"""create shops, repair cases, case catalogs and notifications

Revision ID: 7b2e4c91d0a3
Revises:
Create Date: 2026-10-19 09:12:44.310522

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7b2e4c91d0a3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False)


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'shops',
        _id_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sla_alerts_enabled', sa.Boolean(), server_default='true', nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shops_sla_alerts_enabled', 'shops', ['sla_alerts_enabled'])
    op.create_index('ix_shops_created_at', 'shops', ['created_at'])

    op.create_table(
        'repair_cases',
        _id_column(),
        sa.Column('shop_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('case_number', sa.String(length=50), nullable=False),
        sa.Column('type_key', sa.String(length=50), nullable=False),
        sa.Column('status_key', sa.String(length=50), nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_repair_cases_shop_id', 'repair_cases', ['shop_id'])
    op.create_index('ix_repair_cases_shop_id_status_key', 'repair_cases', ['shop_id', 'status_key'])
    op.create_index('ix_repair_cases_created_at', 'repair_cases', ['created_at'])

    op.create_table(
        'shop_case_types',
        _id_column(),
        sa.Column('shop_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type_key', sa.String(length=50), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=False),
        sa.Column('max_processing_days', sa.Integer(), nullable=False),
        sa.Column('alert_days', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'type_key', name='uq_shop_case_types_shop_type'),
    )
    op.create_index('ix_shop_case_types_shop_id', 'shop_case_types', ['shop_id'])
    op.create_index('ix_shop_case_types_created_at', 'shop_case_types', ['created_at'])

    op.create_table(
        'shop_case_statuses',
        _id_column(),
        sa.Column('shop_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status_key', sa.String(length=50), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=False),
        sa.Column('pause_timer', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_final_status', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamp_columns(),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_id', 'status_key', name='uq_shop_case_statuses_shop_status'),
    )
    op.create_index('ix_shop_case_statuses_shop_id', 'shop_case_statuses', ['shop_id'])
    op.create_index('ix_shop_case_statuses_created_at', 'shop_case_statuses', ['created_at'])

    op.create_table(
        'notifications',
        _id_column(),
        sa.Column('shop_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('case_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['case_id'], ['repair_cases.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_shop_id', 'notifications', ['shop_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])
    op.create_index('ix_notifications_case_type_created', 'notifications', ['case_id', 'type', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_notifications_case_type_created', table_name='notifications')
    op.drop_index('ix_notifications_created_at', table_name='notifications')
    op.drop_index('ix_notifications_shop_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_shop_case_statuses_created_at', table_name='shop_case_statuses')
    op.drop_index('ix_shop_case_statuses_shop_id', table_name='shop_case_statuses')
    op.drop_table('shop_case_statuses')
    op.drop_index('ix_shop_case_types_created_at', table_name='shop_case_types')
    op.drop_index('ix_shop_case_types_shop_id', table_name='shop_case_types')
    op.drop_table('shop_case_types')
    op.drop_index('ix_repair_cases_created_at', table_name='repair_cases')
    op.drop_index('ix_repair_cases_shop_id_status_key', table_name='repair_cases')
    op.drop_index('ix_repair_cases_shop_id', table_name='repair_cases')
    op.drop_table('repair_cases')
    op.drop_index('ix_shops_created_at', table_name='shops')
    op.drop_index('ix_shops_sla_alerts_enabled', table_name='shops')
    op.drop_table('shops')

"""Create app_user, asset and asset_history tables

Revision ID: a7c3e1f90b21
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a7c3e1f90b21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'app_user',
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('fullname', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='employee', comment='admin | employee'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('user_id')
    )

    op.create_table(
        'asset',
        sa.Column('asset_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.String(length=64), nullable=True),
        sa.Column('serial_number', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='free', comment='free | using | maintenance | retired'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('assignee_id', sa.String(length=64), nullable=True),
        sa.Column('handover_date', sa.Date(), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_asset_quantity_positive'),
        sa.CheckConstraint('(assignee_id IS NULL) = (handover_date IS NULL)', name='ck_asset_holder_pair'),
        sa.PrimaryKeyConstraint('asset_id')
    )
    op.create_index('ix_asset_status', 'asset', ['status'], unique=False)
    op.create_index('ix_asset_assignee_id', 'asset', ['assignee_id'], unique=False)

    op.create_table(
        'asset_history',
        sa.Column('event_id', sa.String(length=64), nullable=False),
        sa.Column('asset_id', sa.String(length=64), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False, comment='assignment | status_change'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('previous_user', sa.String(length=64), nullable=True),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('assigned_by', sa.String(length=64), nullable=True),
        sa.Column('handover_date', sa.Date(), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=True),
        sa.Column('previous_status', sa.String(length=20), nullable=True),
        sa.Column('changed_by', sa.String(length=64), nullable=True),
        sa.Column('change_date', sa.DateTime(), nullable=True),
        sa.Column('unassigned_date', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('event_id')
    )

    # Audit trail reads and previous-holder fallback both scan by asset, newest first
    op.create_index('ix_asset_history_asset_created', 'asset_history', ['asset_id', 'created_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_asset_history_asset_created', table_name='asset_history')
    op.drop_table('asset_history')
    op.drop_index('ix_asset_assignee_id', table_name='asset')
    op.drop_index('ix_asset_status', table_name='asset')
    op.drop_table('asset')
    op.drop_table('app_user')

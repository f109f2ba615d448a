"""Create admin console tables and seed admin roles"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str | None = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ADMIN_ROLES = (
    'super_admin',
    'moderator',
    'operations_admin',
    'finance_admin',
    'support_admin',
)


def upgrade() -> None:
    """Apply schema changes."""
    admin_roles = op.create_table(
        'admin_roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role_name', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_admin_roles')),
    )
    op.create_index('ix_admin_roles_role_name', 'admin_roles', ['role_name'], unique=True)

    op.create_table(
        'admin_users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['role_id'], ['admin_roles.id'], name=op.f('fk_admin_users_role_id_admin_roles'), ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_admin_users')),
        sa.UniqueConstraint('email', name=op.f('uq_admin_users_email')),
    )
    op.create_index('ix_admin_users_role_id', 'admin_users', ['role_id'], unique=False)

    op.create_table(
        'auctions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('current_highest_bid', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_auctions')),
    )
    op.create_index('ix_auctions_status', 'auctions', ['status'], unique=False)

    op.create_table(
        'admin_auction_monitoring',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('auction_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('time_remaining_seconds', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_final_two_minutes', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('is_flagged', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('flag_reason', sa.Text(), nullable=True),
        sa.Column('monitored_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['auction_id'], ['auctions.id'], name=op.f('fk_admin_auction_monitoring_auction_id_auctions'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['monitored_by'], ['admin_users.id'], name=op.f('fk_admin_auction_monitoring_monitored_by_admin_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_admin_auction_monitoring')),
        sa.UniqueConstraint('auction_id', name=op.f('uq_admin_auction_monitoring_auction_id')),
    )
    op.create_index(
        'ix_admin_auction_monitoring_is_final_two_minutes',
        'admin_auction_monitoring',
        ['is_final_two_minutes'],
        unique=False,
    )

    op.create_table(
        'admin_audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('resource_type', sa.String(length=100), nullable=False),
        sa.Column('resource_id', sa.String(length=255), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['admin_id'], ['admin_users.id'], name=op.f('fk_admin_audit_log_admin_id_admin_users'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_admin_audit_log')),
    )
    op.create_index('ix_admin_audit_log_admin_id', 'admin_audit_log', ['admin_id'], unique=False)
    op.create_index('ix_admin_audit_log_action', 'admin_audit_log', ['action'], unique=False)
    op.create_index('ix_admin_audit_log_resource_type', 'admin_audit_log', ['resource_type'], unique=False)
    op.create_index('ix_admin_audit_log_resource_id', 'admin_audit_log', ['resource_id'], unique=False)
    op.create_index('ix_admin_audit_log_created_at', 'admin_audit_log', ['created_at'], unique=False)

    op.create_table(
        'admin_dashboard_metrics',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('metric_date', sa.Date(), nullable=False),
        sa.Column('pending_kyc_reviews', sa.Integer(), server_default='0', nullable=False),
        sa.Column('active_auctions', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_revenue_today', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
        sa.Column('active_users', sa.Integer(), server_default='0', nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_admin_dashboard_metrics')),
    )
    op.create_index(
        'ix_admin_dashboard_metrics_metric_date',
        'admin_dashboard_metrics',
        ['metric_date'],
        unique=True,
    )

    # Role names must match the capability table exactly
    op.bulk_insert(
        admin_roles,
        [{'id': uuid.uuid4(), 'role_name': name} for name in ADMIN_ROLES],
    )


def downgrade() -> None:
    """Revert schema changes."""
    op.drop_index('ix_admin_dashboard_metrics_metric_date', table_name='admin_dashboard_metrics')
    op.drop_table('admin_dashboard_metrics')

    op.drop_index('ix_admin_audit_log_created_at', table_name='admin_audit_log')
    op.drop_index('ix_admin_audit_log_resource_id', table_name='admin_audit_log')
    op.drop_index('ix_admin_audit_log_resource_type', table_name='admin_audit_log')
    op.drop_index('ix_admin_audit_log_action', table_name='admin_audit_log')
    op.drop_index('ix_admin_audit_log_admin_id', table_name='admin_audit_log')
    op.drop_table('admin_audit_log')

    op.drop_index('ix_admin_auction_monitoring_is_final_two_minutes', table_name='admin_auction_monitoring')
    op.drop_table('admin_auction_monitoring')

    op.drop_index('ix_auctions_status', table_name='auctions')
    op.drop_table('auctions')

    op.drop_index('ix_admin_users_role_id', table_name='admin_users')
    op.drop_table('admin_users')

    op.drop_index('ix_admin_roles_role_name', table_name='admin_roles')
    op.drop_table('admin_roles')

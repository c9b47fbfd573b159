"""Create tenant, role and loyalty ledger tables.

Revision ID: a1c4e7f0b3d6
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7f0b3d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create tenants, tenant_roles, loyalty_rewards, loyalty_customers, loyalty_transactions."""
    op.create_table(
        'tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_tenants_slug'),
    )

    op.create_table(
        'tenant_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'user_id', name='uq_tenant_role_user'),
    )

    op.create_table(
        'loyalty_rewards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(1000), server_default=''),
        sa.Column('points_cost', sa.Integer(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_loyalty_rewards_tenant_sort', 'loyalty_rewards', ['tenant_id', 'sort_order'])

    op.create_table(
        'loyalty_customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('points_balance', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lifetime_points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_tier', sa.String(50), nullable=False),
        sa.Column('streak_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_visit_date', sa.Date(), nullable=True),
        sa.Column('last_redeemed_at', sa.DateTime(), nullable=True),
        sa.Column('last_reward_id', sa.Integer(), nullable=True),
        sa.Column('joined_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_activity_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['last_reward_id'], ['loyalty_rewards.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('tenant_id', 'phone', name='uq_loyalty_customer_phone'),
        sa.UniqueConstraint('tenant_id', 'email', name='uq_loyalty_customer_email'),
        sa.CheckConstraint('points_balance >= 0', name='ck_loyalty_customer_balance_non_negative'),
        sa.CheckConstraint('lifetime_points >= 0', name='ck_loyalty_customer_lifetime_non_negative'),
        sa.CheckConstraint('streak_count >= 0', name='ck_loyalty_customer_streak_non_negative'),
    )

    op.create_table(
        'loyalty_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', sa.String(20), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('purchase_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('reward_id', sa.Integer(), nullable=True),
        sa.Column('staff_actor_id', sa.String(128), nullable=True),
        sa.Column('note', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['loyalty_customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reward_id'], ['loyalty_rewards.id'], ondelete='SET NULL'),
    )
    op.create_index(
        'ix_loyalty_tx_customer_created', 'loyalty_transactions',
        ['tenant_id', 'customer_id', 'created_at']
    )
    op.create_index('ix_loyalty_tx_tenant_created', 'loyalty_transactions', ['tenant_id', 'created_at'])


def downgrade():
    """Drop all loyalty tables."""
    op.drop_index('ix_loyalty_tx_tenant_created', table_name='loyalty_transactions')
    op.drop_index('ix_loyalty_tx_customer_created', table_name='loyalty_transactions')
    op.drop_table('loyalty_transactions')
    op.drop_table('loyalty_customers')
    op.drop_index('ix_loyalty_rewards_tenant_sort', table_name='loyalty_rewards')
    op.drop_table('loyalty_rewards')
    op.drop_table('tenant_roles')
    op.drop_table('tenants')

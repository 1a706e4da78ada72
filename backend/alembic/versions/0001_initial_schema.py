"""Initial ChatDesk schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True):
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )
    return columns


def upgrade() -> None:
    """Create users, subscriptions, message logs and settings tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), unique=True),
        sa.Column('phone', sa.String(32), nullable=False),

        # Messaging identity
        sa.Column('whatsapp_number', sa.String(32)),
        sa.Column('whatsapp_token', sa.String()),
        sa.Column('is_whatsapp_registered', sa.Boolean, nullable=False, server_default='false'),

        sa.Column('role', sa.String(20), nullable=False, server_default='user_level_1'),
        sa.Column('parent_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE')),
        sa.Column('ai_name', sa.String(100)),
        sa.Column('welcome_message', sa.String()),
        *_timestamps(),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_phone', 'users', ['phone'])
    op.create_index('ix_users_whatsapp_number', 'users', ['whatsapp_number'], unique=True)
    op.create_index('ix_users_parent_user_id', 'users', ['parent_user_id'])

    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.String()),
        sa.Column('user_level', sa.String(20), nullable=False, server_default='user_level_2'),
        sa.Column('price_before_discount', sa.Numeric(10, 2)),
        sa.Column('price_after_discount', sa.Numeric(10, 2)),
        sa.Column('duration', sa.String(20), nullable=False, server_default='monthly'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('features', sa.JSON, nullable=False, server_default='[]'),
        sa.Column('is_default', sa.Boolean, nullable=False, server_default='false'),
        *_timestamps(with_updated=False),
    )
    # Only one plan may be the trial default
    op.create_index(
        'uq_subscription_plans_single_default',
        'subscription_plans',
        ['is_default'],
        unique=True,
        postgresql_where=sa.text('is_default'),
    )

    op.create_table(
        'user_subscriptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'plan_id',
            sa.Uuid(),
            sa.ForeignKey('subscription_plans.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('remaining_days', sa.Integer, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('is_trial_period', sa.Boolean, nullable=False, server_default='false'),
        *_timestamps(),
        sa.CheckConstraint('remaining_days >= 0', name='ck_user_subscriptions_remaining_days'),
    )
    op.create_index('ix_user_subscriptions_user_id', 'user_subscriptions', ['user_id'])
    op.create_index('ix_user_subscriptions_plan_id', 'user_subscriptions', ['plan_id'])

    op.create_table(
        'received_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('upstream_id', sa.String(128), nullable=False),
        sa.Column('sender', sa.String(64), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='unread'),
        sa.Column('original_date', sa.String(64)),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint('upstream_id', 'user_id', name='uq_received_messages_upstream_user'),
    )
    op.create_index('ix_received_messages_user_id', 'received_messages', ['user_id'])
    op.create_index('ix_received_messages_upstream_id', 'received_messages', ['upstream_id'])

    op.create_table(
        'sent_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient', sa.String(64), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='sent'),
        *_timestamps(with_updated=False),
    )
    op.create_index('ix_sent_messages_user_id', 'sent_messages', ['user_id'])

    op.create_table(
        'whatsapp_settings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token', sa.String()),
        sa.Column('is_enabled', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('notifications', sa.JSON, nullable=False, server_default='[]'),
        sa.Column('ai_name', sa.String(100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'ai_token_settings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('provider', sa.String(20), nullable=False, server_default='gemini'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default='true'),
        *_timestamps(),
    )


def downgrade() -> None:
    """Drop all ChatDesk tables."""
    op.drop_table('ai_token_settings')
    op.drop_table('whatsapp_settings')
    op.drop_table('sent_messages')
    op.drop_table('received_messages')
    op.drop_table('user_subscriptions')
    op.drop_index('uq_subscription_plans_single_default', table_name='subscription_plans')
    op.drop_table('subscription_plans')
    op.drop_table('users')

"""initial talent booking schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


# Enum columns are stored as lowercase strings (non-native enums)
def _enum():
    return sa.String(length=32)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('profile_image_url', sa.String(), nullable=True),
        sa.Column('role', _enum(), nullable=False),
        sa.Column('status', _enum(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'talent_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage_name', sa.String(), nullable=True),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('experience', sa.Text(), nullable=True),
        sa.Column('union_status', sa.String(), nullable=True),
        sa.Column('measurements', sa.JSON(), nullable=True),
        sa.Column('rates', sa.JSON(), nullable=True),
        sa.Column('media_urls', sa.JSON(), nullable=False),
        sa.Column('social', sa.JSON(), nullable=True),
        sa.Column('approval_status', _enum(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_talent_profiles_id', 'talent_profiles', ['id'])
    op.create_index('ix_talent_profiles_user_id', 'talent_profiles', ['user_id'], unique=True)
    op.create_index('ix_talent_profiles_location', 'talent_profiles', ['location'])
    op.create_index('ix_talent_profiles_approval_status', 'talent_profiles', ['approval_status'])

    op.create_table(
        'booking_code_sequences',
        sa.Column('year', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('current_seq', sa.Integer(), nullable=False),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('category', _enum(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('usage', sa.JSON(), nullable=True),
        sa.Column('deliverables', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', _enum(), nullable=False),
        sa.Column('requested_talent_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_bookings_id', 'bookings', ['id'])
    op.create_index('ix_bookings_code', 'bookings', ['code'], unique=True)
    op.create_index('ix_bookings_start_date', 'bookings', ['start_date'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_bookings_client_id', 'bookings', ['client_id'])

    op.create_table(
        'booking_talents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('talent_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('request_status', _enum(), nullable=False),
        sa.Column('response_message', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('booking_id', 'talent_id', name='uq_booking_talents_booking_talent'),
    )
    op.create_index('ix_booking_talents_id', 'booking_talents', ['id'])
    op.create_index('ix_booking_talents_booking_id', 'booking_talents', ['booking_id'])
    op.create_index('ix_booking_talents_talent_id', 'booking_talents', ['talent_id'])
    op.create_index('ix_booking_talents_request_status', 'booking_talents', ['request_status'])

    op.create_table(
        'contracts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('booking_talent_id', sa.Integer(), sa.ForeignKey('booking_talents.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('template_id', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('pdf_url', sa.String(), nullable=True),
        sa.Column('status', _enum(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_contracts_id', 'contracts', ['id'])
    op.create_index('ix_contracts_booking_id', 'contracts', ['booking_id'])
    op.create_index('ix_contracts_status', 'contracts', ['status'])

    op.create_table(
        'signatures',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('contract_id', sa.Integer(), sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('signer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('signature_image_url', sa.String(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('status', _enum(), nullable=False),
        sa.Column('signed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('contract_id', 'signer_id', name='uq_signatures_contract_signer'),
    )
    op.create_index('ix_signatures_id', 'signatures', ['id'])
    op.create_index('ix_signatures_contract_id', 'signatures', ['contract_id'])
    op.create_index('ix_signatures_signer_id', 'signatures', ['signer_id'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('scope', _enum(), nullable=False),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id', ondelete='SET NULL'), nullable=True),
        sa.Column('talent_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assignee_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', _enum(), nullable=False),
        sa.Column('priority', _enum(), nullable=False),
        sa.Column('due_at', sa.DateTime(), nullable=True),
        sa.Column('attachment_urls', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'])
    op.create_index('ix_tasks_booking_id', 'tasks', ['booking_id'])
    op.create_index('ix_tasks_talent_id', 'tasks', ['talent_id'])
    op.create_index('ix_tasks_assignee_id', 'tasks', ['assignee_id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', _enum(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('action_url', sa.String(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])


def downgrade() -> None:
    for table in (
        'notifications',
        'tasks',
        'signatures',
        'contracts',
        'booking_talents',
        'bookings',
        'booking_code_sequences',
        'talent_profiles',
        'users',
    ):
        op.drop_table(table)

"""Initial progression engine schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _owner_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def _create_owner_table(name: str, *columns, constraints=()):
    op.create_table(
        name,
        *_owner_columns(),
        *columns,
        sa.PrimaryKeyConstraint('id'),
        *constraints,
    )
    op.create_index(f'ix_{name}_owner_id', name, ['owner_id'])


def upgrade() -> None:
    """
    Create every engine table.

    All engine timestamps are integer epoch milliseconds (BigInteger);
    created_at/updated_at are bookkeeping only.
    """
    _create_owner_table(
        'labs',
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('founder_type', sa.String(length=30), nullable=False),
        constraints=[sa.UniqueConstraint('owner_id', name='uq_labs_owner')],
    )

    _create_owner_table(
        'owner_progression',
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('experience', sa.Integer(), nullable=False),
        sa.Column('upgrade_points', sa.Integer(), nullable=False),
        sa.Column('queue_rank', sa.Integer(), nullable=False),
        sa.Column('staff_rank', sa.Integer(), nullable=False),
        sa.Column('compute_rank', sa.Integer(), nullable=False),
        sa.Column('speed_rank', sa.Integer(), nullable=False),
        sa.Column('money_multiplier_rank', sa.Integer(), nullable=False),
        constraints=[
            sa.UniqueConstraint('owner_id', name='uq_owner_progression_owner'),
            sa.CheckConstraint('level >= 1', name='ck_owner_progression_level'),
            sa.CheckConstraint('upgrade_points >= 0', name='ck_owner_progression_up'),
        ],
    )

    _create_owner_table(
        'resource_pools',
        sa.Column('cash', sa.Integer(), nullable=False),
        sa.Column('research_points', sa.Integer(), nullable=False),
        sa.Column('staff_count', sa.Integer(), nullable=False),
        sa.Column('speed_bonus', sa.Float(), nullable=False),
        sa.Column('money_bonus', sa.Float(), nullable=False),
        constraints=[
            sa.UniqueConstraint('owner_id', name='uq_resource_pools_owner'),
            sa.CheckConstraint('cash >= 0', name='ck_resource_pools_cash'),
            sa.CheckConstraint('research_points >= 0', name='ck_resource_pools_rp'),
            sa.CheckConstraint('staff_count >= 0', name='ck_resource_pools_staff'),
        ],
    )

    _create_owner_table(
        'owner_unlocks',
        sa.Column('blueprint_ids', sa.JSON(), nullable=False),
        sa.Column('job_ids', sa.JSON(), nullable=False),
        sa.Column('system_flags', sa.JSON(), nullable=False),
        constraints=[sa.UniqueConstraint('owner_id', name='uq_owner_unlocks_owner')],
    )

    _create_owner_table(
        'jobs',
        sa.Column('content_id', sa.String(length=100), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('base_duration_ms', sa.BigInteger(), nullable=False),
        sa.Column('base_cost', sa.Integer(), nullable=False),
        sa.Column('cost_resource', sa.String(length=30), nullable=False),
        sa.Column('charged_cost', sa.Integer(), nullable=False),
        sa.Column('compute_cost', sa.Integer(), nullable=False),
        sa.Column('base_reward_money', sa.Integer(), nullable=False),
        sa.Column('base_reward_rp', sa.Integer(), nullable=False),
        sa.Column('base_reward_xp', sa.Integer(), nullable=False),
        sa.Column('started_at_ms', sa.BigInteger(), nullable=True),
        sa.Column('completes_at_ms', sa.BigInteger(), nullable=True),
        sa.Column('created_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('completed_at_ms', sa.BigInteger(), nullable=True),
        sa.Column('rewards', sa.JSON(), nullable=True),
        sa.Column('artifact_id', sa.Uuid(), nullable=True),
        constraints=[sa.UniqueConstraint('owner_id', 'sequence', name='uq_jobs_owner_sequence')],
    )
    op.create_index('ix_jobs_owner_status', 'jobs', ['owner_id', 'status'])

    _create_owner_table(
        'job_cooldowns',
        sa.Column('content_id', sa.String(length=100), nullable=False),
        sa.Column('available_at_ms', sa.BigInteger(), nullable=False),
        constraints=[sa.UniqueConstraint('owner_id', 'content_id', name='uq_job_cooldowns_owner_content')],
    )

    _create_owner_table(
        'research_purchases',
        sa.Column('node_id', sa.String(length=100), nullable=False),
        sa.Column('purchased_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=True),
        constraints=[sa.UniqueConstraint('owner_id', 'node_id', name='uq_research_purchases_owner_node')],
    )

    _create_owner_table(
        'scored_artifacts',
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('blueprint_id', sa.String(length=100), nullable=False),
        sa.Column('model_type', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('trained_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('visibility', sa.String(length=10), nullable=False),
        constraints=[
            sa.UniqueConstraint('owner_id', 'blueprint_id', 'version', name='uq_scored_artifacts_version'),
        ],
    )
    op.create_index(
        'ix_scored_artifacts_blueprint_visibility', 'scored_artifacts', ['blueprint_id', 'visibility']
    )

    _create_owner_table(
        'notifications',
        sa.Column('kind', sa.String(length=30), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('job_id', sa.Uuid(), nullable=True),
        sa.Column('event_id', sa.String(length=100), nullable=True),
        sa.Column('deep_link', sa.JSON(), nullable=True),
    )
    op.create_index('ix_notifications_owner_read', 'notifications', ['owner_id', 'read'])
    op.create_index('ix_notifications_owner_event', 'notifications', ['owner_id', 'event_id'])

    _create_owner_table(
        'time_warp_settings',
        sa.Column('time_scale', sa.Float(), nullable=False),
        sa.Column('anchor_real_ms', sa.BigInteger(), nullable=False),
        sa.Column('anchor_effective_ms', sa.BigInteger(), nullable=False),
        constraints=[sa.UniqueConstraint('owner_id', name='uq_time_warp_settings_owner')],
    )

    _create_owner_table(
        'scheduled_callbacks',
        sa.Column('job_id', sa.Uuid(), nullable=False),
        sa.Column('handler', sa.String(length=100), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('effective_deadline_ms', sa.BigInteger(), nullable=False),
        sa.Column('fire_at_ms', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('delivered_at_ms', sa.BigInteger(), nullable=True),
        constraints=[sa.UniqueConstraint('job_id', name='uq_scheduled_callbacks_job')],
    )
    op.create_index('ix_scheduled_callbacks_status_fire', 'scheduled_callbacks', ['status', 'fire_at_ms'])


def downgrade() -> None:
    """Drop every engine table."""
    op.drop_index('ix_scheduled_callbacks_status_fire', table_name='scheduled_callbacks')
    op.drop_index('ix_notifications_owner_event', table_name='notifications')
    op.drop_index('ix_notifications_owner_read', table_name='notifications')
    op.drop_index('ix_scored_artifacts_blueprint_visibility', table_name='scored_artifacts')
    op.drop_index('ix_jobs_owner_status', table_name='jobs')
    for name in (
        'scheduled_callbacks',
        'time_warp_settings',
        'notifications',
        'scored_artifacts',
        'research_purchases',
        'job_cooldowns',
        'jobs',
        'owner_unlocks',
        'resource_pools',
        'owner_progression',
        'labs',
    ):
        op.drop_index(f'ix_{name}_owner_id', table_name=name)
        op.drop_table(name)

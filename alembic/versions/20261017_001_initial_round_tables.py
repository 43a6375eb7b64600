"""Initial round engine tables - v1.0

Revision ID: 001_round_tables
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_round_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the organization, user, round and assessment tables."""

    # ===== 1. ORGANIZATIONS =====
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('par', sa.Integer(), nullable=False),
        sa.Column('compensation_period', sa.String(20), nullable=True),
        sa.Column('compensation_start_day', sa.DateTime(), nullable=True),
        sa.Column('assessment_duration_in_days', sa.Integer(), nullable=False),
        sa.Column('assessment_start_delay_in_days', sa.Integer(), nullable=False),
        sa.Column('total_funds', sa.Numeric(14, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # ===== 2. USERS =====
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('wallet_address', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('profile_picture', sa.String(1024), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
    )
    op.create_index('ix_users_wallet_address', 'users', ['wallet_address'], unique=True)
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    # ===== 3. AGREEMENTS =====
    op.create_table(
        'agreements',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, unique=True),
        sa.Column('role_name', sa.String(255), nullable=False),
        sa.Column('responsibilities', sa.Text(), nullable=False),
        sa.Column('commitment', sa.Integer(), nullable=False),
        sa.Column('market_rate', sa.Numeric(14, 2), nullable=False),
        sa.Column('fiat_requested', sa.Numeric(14, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    )

    # ===== 4. ROUNDS =====
    op.create_table(
        'rounds',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('tx_hash', sa.String(100), nullable=True),
        sa.Column('compensation_cycle_start_date', sa.DateTime(), nullable=False),
        sa.Column('compensation_cycle_end_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.UniqueConstraint('organization_id', 'round_number', name='uq_round_org_number'),
    )
    op.create_index('ix_rounds_organization_id', 'rounds', ['organization_id'])
    op.create_index('ix_rounds_end_date', 'rounds', ['end_date'])
    op.create_index('ix_rounds_is_completed', 'rounds', ['is_completed'])

    # ===== 5. ASSESSMENTS =====
    op.create_table(
        'assessments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('round_id', sa.String(36), nullable=False),
        sa.Column('assessor_id', sa.String(36), nullable=False),
        sa.Column('assessed_id', sa.String(36), nullable=False),
        sa.Column('culture_score', sa.Float(), nullable=True),
        sa.Column('work_score', sa.Float(), nullable=True),
        sa.Column('feedback_positive', sa.Text(), nullable=True),
        sa.Column('feedback_negative', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['round_id'], ['rounds.id']),
        sa.ForeignKeyConstraint(['assessor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['assessed_id'], ['users.id']),
        sa.UniqueConstraint('round_id', 'assessor_id', 'assessed_id', name='uq_assessment_round_pair'),
    )
    op.create_index('ix_assessments_round_id', 'assessments', ['round_id'])

    # ===== 6. CONTRIBUTOR ROUND COMPENSATIONS =====
    op.create_table(
        'contributor_round_compensations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('round_id', sa.String(36), nullable=False),
        sa.Column('contributor_id', sa.String(36), nullable=False),
        sa.Column('cultural_score', sa.Float(), nullable=False),
        sa.Column('work_score', sa.Float(), nullable=False),
        sa.Column('final_score', sa.Float(), nullable=False),
        sa.Column('agreement_commitment', sa.Integer(), nullable=False),
        sa.Column('agreement_market_rate', sa.Numeric(14, 2), nullable=False),
        sa.Column('agreement_fiat_requested', sa.Numeric(14, 2), nullable=False),
        sa.Column('tp', sa.Numeric(14, 2), nullable=False),
        sa.Column('fiat', sa.Numeric(14, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['round_id'], ['rounds.id']),
        sa.ForeignKeyConstraint(['contributor_id'], ['users.id']),
        sa.UniqueConstraint('round_id', 'contributor_id', name='uq_compensation_round_contributor'),
    )
    op.create_index(
        'ix_contributor_round_compensations_round_id',
        'contributor_round_compensations',
        ['round_id'],
    )


def downgrade() -> None:
    """Drop all round engine tables."""
    op.drop_table('contributor_round_compensations')
    op.drop_table('assessments')
    op.drop_table('rounds')
    op.drop_table('agreements')
    op.drop_table('users')
    op.drop_table('organizations')

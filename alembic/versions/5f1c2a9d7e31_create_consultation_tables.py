"""Create users, consultations, consultation_drafts and consultation_versions.

Revision ID: 5f1c2a9d7e31
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '5f1c2a9d7e31'
down_revision = None
branch_labels = None
depends_on = None


def _section_column(name: str) -> sa.Column:
    return sa.Column(
        name, postgresql.JSONB(astext_type=sa.Text()), nullable=False,
        server_default=sa.text("'{}'::jsonb"),
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('supabase_user_id', sa.String(), nullable=False, unique=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )

    op.create_table(
        'consultations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _section_column('contact_info'),
        _section_column('business_context'),
        _section_column('pain_points'),
        _section_column('goals_objectives'),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft',
                  comment='draft | completed | archived'),
        sa.Column('completion_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('draft', 'completed', 'archived')", name='ck_consultations_status'),
        sa.CheckConstraint(
            'completion_percentage >= 0 AND completion_percentage <= 100',
            name='ck_consultations_completion_range',
        ),
    )
    op.create_index('idx_consultations_user_id', 'consultations', ['user_id'])
    op.create_index('idx_consultations_status', 'consultations', ['status'])
    op.create_index('idx_consultations_created_at', 'consultations', ['created_at'])

    op.create_table(
        'consultation_drafts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('consultation_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('consultations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _section_column('contact_info'),
        _section_column('business_context'),
        _section_column('pain_points'),
        _section_column('goals_objectives'),
        sa.Column('auto_saved', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('draft_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.UniqueConstraint('consultation_id', 'user_id', name='uq_consultation_drafts_consultation_user'),
    )
    op.create_index('idx_consultation_drafts_updated_at', 'consultation_drafts', ['updated_at'])

    op.create_table(
        'consultation_versions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('consultation_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('consultations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        _section_column('contact_info'),
        _section_column('business_context'),
        _section_column('pain_points'),
        _section_column('goals_objectives'),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('completion_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('change_summary', sa.Text(), nullable=True),
        sa.Column('changed_fields', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  server_default=sa.text("'[]'::jsonb")),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.UniqueConstraint('consultation_id', 'version_number', name='uq_consultation_versions_number'),
    )
    op.create_index('idx_consultation_versions_consultation_id', 'consultation_versions', ['consultation_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_consultation_versions_consultation_id', table_name='consultation_versions')
    op.drop_table('consultation_versions')
    op.drop_index('idx_consultation_drafts_updated_at', table_name='consultation_drafts')
    op.drop_table('consultation_drafts')
    op.drop_index('idx_consultations_created_at', table_name='consultations')
    op.drop_index('idx_consultations_status', table_name='consultations')
    op.drop_index('idx_consultations_user_id', table_name='consultations')
    op.drop_table('consultations')
    op.drop_table('users')

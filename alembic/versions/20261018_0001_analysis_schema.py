"""Create the analysis schema

Organizations, recordings with their transcript, process templates and the
one-per-recording analysis results.

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261018_0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        'recordings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('org_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('title', sa.String(255)),
        sa.Column('storage_url', sa.String(512), nullable=True),
        sa.Column('duration_sec', sa.Integer()),
        sa.Column('uploaded_by', sa.Integer()),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        *_timestamps(),
    )
    op.create_index('ix_recordings_org_id', 'recordings', ['org_id'])
    op.create_index('ix_recordings_status', 'recordings', ['status'])

    op.create_table(
        'transcripts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('org_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('recording_id', sa.Integer(), sa.ForeignKey('recordings.id'), nullable=False, unique=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('lang', sa.String(10)),
        *_timestamps(),
    )
    op.create_index('ix_transcripts_org_id', 'transcripts', ['org_id'])

    op.create_table(
        'process_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('org_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('steps', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint('org_id', 'name', name='uq_process_templates_org_name'),
    )
    op.create_index('ix_process_templates_org_id', 'process_templates', ['org_id'])
    op.create_index('ix_process_templates_is_active', 'process_templates', ['is_active'])

    op.create_table(
        'analysis_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recording_id', sa.Integer(), sa.ForeignKey('recordings.id'), nullable=False, unique=True),
        sa.Column('sentiment', sa.JSON(), nullable=False),
        sa.Column('sales_opportunities', sa.JSON(), nullable=False),
        sa.Column('process_score', sa.JSON(), nullable=True),
        sa.Column('action_items', sa.JSON(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table('analysis_results')
    op.drop_index('ix_process_templates_is_active', table_name='process_templates')
    op.drop_index('ix_process_templates_org_id', table_name='process_templates')
    op.drop_table('process_templates')
    op.drop_index('ix_transcripts_org_id', table_name='transcripts')
    op.drop_table('transcripts')
    op.drop_index('ix_recordings_status', table_name='recordings')
    op.drop_index('ix_recordings_org_id', table_name='recordings')
    op.drop_table('recordings')
    op.drop_table('organizations')

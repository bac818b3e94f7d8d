"""Create project_document table

Revision ID: 001
Revises:
Create Date: 2024-05-01 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


APPROVAL_STATUSES = ('pending', 'approved', 'rejected', 'auto_approved', 'available')
REVIEW_STATUSES = ('unreviewed', 'reviewed')
VISIBILITY_LEVELS = ('internal', 'contractors', 'customers', 'public')
WORKFLOW_STAGES = ('pending_approval', 'approved', 'rejected', 'auto_approved', 'available')
APPROVAL_LEVELS = ('standard', 'specialist', 'manager', 'finance', 'director')


def _enum(values, name):
    # VARCHAR + CHECK, matching the ORM's native_enum=False columns
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True)


def upgrade():
    """Create project_document with workflow state and audit columns."""

    op.create_table(
        'project_document',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('project_id', sa.Uuid(), nullable=False),

        # Display metadata
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),

        # Blob location (written once)
        sa.Column('storage_path', sa.Text(), nullable=False),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.Text(), nullable=True),
        sa.Column('uploaded_by_user_id', sa.Uuid(), nullable=False),
        sa.Column('uploaded_at', sa.TIMESTAMP(timezone=True), nullable=False),

        # Workflow state
        sa.Column('approval_status', _enum(APPROVAL_STATUSES, 'approvalstatus'), nullable=False),
        sa.Column('review_status', _enum(REVIEW_STATUSES, 'reviewstatus'), nullable=True),
        sa.Column('visibility_level', _enum(VISIBILITY_LEVELS, 'visibilitylevel'), nullable=False),
        sa.Column('workflow_stage', _enum(WORKFLOW_STAGES, 'workflowstage'), nullable=False),
        sa.Column('approval_level', _enum(APPROVAL_LEVELS, 'approvallevel'), nullable=True),

        # Approval / review audit
        sa.Column('approved_by_user_id', sa.Uuid(), nullable=True),
        sa.Column('approved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_by_user_id', sa.Uuid(), nullable=True),
        sa.Column('reviewed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('review_comments', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),

        # Constraints
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('storage_path', name='uq_project_document_storage_path'),
    )

    op.create_index('ix_project_document_project_id', 'project_document', ['project_id'])
    op.create_index('ix_project_document_status', 'project_document', ['approval_status', 'review_status'])


def downgrade():
    """Drop project_document table."""

    op.drop_index('ix_project_document_status', table_name='project_document')
    op.drop_index('ix_project_document_project_id', table_name='project_document')
    op.drop_table('project_document')

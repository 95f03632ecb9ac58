"""create recruitment core tables: applications, messaging, documents, audit

Revision ID: 20261018_0900
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20261018_0900'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _soft_delete_columns():
    return [
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_by', postgresql.UUID(as_uuid=True), nullable=True),
    ]


def upgrade() -> None:
    """
    Create the recruitment core schema.

    Features:
    - Applications with a version stamp and at most one live row per (job, candidate)
    - Insert-only status history and one pre-hire confirmation per application
    - Conversations, participants, messages and ratings
    - Documents, share grants and document requests
    - Append-only audit log
    """
    op.create_table(
        'organization_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='recruiter'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'user_id', name='uq_organization_members_org_user'),
    )
    op.create_index('ix_organization_members_organization_id', 'organization_members', ['organization_id'])
    op.create_index('ix_organization_members_user_id', 'organization_members', ['user_id'])

    op.create_table(
        'applications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('job_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('candidate_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='applied',
                  comment='applied, screening, interviewed, offered, pre_hire_checks, hired, rejected, withdrawn'),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('applied_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('screened_at', sa.DateTime(), nullable=True),
        sa.Column('interviewed_at', sa.DateTime(), nullable=True),
        sa.Column('offered_at', sa.DateTime(), nullable=True),
        sa.Column('pre_hire_checks_started_at', sa.DateTime(), nullable=True),
        sa.Column('hired_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('withdrawn_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1',
                  comment='Optimistic concurrency stamp'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_candidate_id', 'applications', ['candidate_id'])
    op.create_index('ix_applications_organization_id', 'applications', ['organization_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('ix_applications_is_deleted', 'applications', ['is_deleted'])
    op.create_index(
        'uq_applications_job_candidate_live',
        'applications',
        ['job_id', 'candidate_id'],
        unique=True,
        postgresql_where=sa.text("status <> 'withdrawn'"),
    )

    op.create_table(
        'application_status_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('from_status', sa.String(length=50), nullable=True, comment='NULL for the creation row'),
        sa.Column('to_status', sa.String(length=50), nullable=False),
        sa.Column('changed_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('pre_hire_confirmation', sa.Boolean(), nullable=True),
        sa.Column('pre_hire_confirmation_text', sa.Text(), nullable=True),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_application_status_history_application_id', 'application_status_history', ['application_id'])
    op.create_index('ix_application_status_history_changed_at', 'application_status_history', ['changed_at'])

    op.create_table(
        'pre_hire_confirmations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('confirmed_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('right_to_work_confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('confirmed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('confirmation_text', sa.Text(), nullable=True),
        sa.Column('confirmation_version', sa.Integer(), nullable=False, server_default='1'),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pre_hire_confirmations_application_id', 'pre_hire_confirmations', ['application_id'], unique=True)
    op.create_index('ix_pre_hire_confirmations_organization_id', 'pre_hire_confirmations', ['organization_id'])

    op.create_table(
        'conversations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('archived_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_conversations_organization_id', 'conversations', ['organization_id'])
    op.create_index('ix_conversations_application_id', 'conversations', ['application_id'])
    op.create_index('ix_conversations_is_active', 'conversations', ['is_active'])

    op.create_table(
        'conversation_participants',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('conversation_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_read_at', sa.DateTime(), nullable=True),
        sa.Column('last_seen_at', sa.DateTime(), nullable=True),
        sa.Column('has_left', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('left_at', sa.DateTime(), nullable=True),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_conversation_participants_conversation_id', 'conversation_participants', ['conversation_id'])
    op.create_index('ix_conversation_participants_user_id', 'conversation_participants', ['user_id'])
    op.create_index(
        'uq_conversation_participants_active',
        'conversation_participants',
        ['conversation_id', 'user_id'],
        unique=True,
        postgresql_where=sa.text('has_left = false'),
    )

    op.create_table(
        'messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('conversation_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sent_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('edited_at', sa.DateTime(), nullable=True),
        sa.Column('edited_by', postgresql.UUID(as_uuid=True), nullable=True),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('ix_messages_organization_id', 'messages', ['organization_id'])
    op.create_index('ix_messages_sent_at', 'messages', ['sent_at'])
    op.create_index('ix_messages_conversation_sender_sent', 'messages', ['conversation_id', 'sent_by', 'sent_at'])

    op.create_table(
        'conversation_ratings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('conversation_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('conversation_id', 'user_id', name='uq_conversation_ratings_conv_user'),
        sa.CheckConstraint('score BETWEEN 1 AND 5', name='ck_conversation_ratings_score'),
    )
    op.create_index('ix_conversation_ratings_conversation_id', 'conversation_ratings', ['conversation_id'])

    op.create_table(
        'documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.String(length=500), nullable=False),
        sa.Column('content_type', sa.String(length=255), nullable=False),
        sa.Column('storage_key', sa.String(length=1000), nullable=True),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_documents_organization_id', 'documents', ['organization_id'])
    op.create_index('ix_documents_uploaded_by', 'documents', ['uploaded_by'])

    op.create_table(
        'document_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('candidate_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('requested_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('document_type', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending',
                  comment='pending, approved, rejected, cancelled'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.Column('responded_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('fulfilled_by_grant_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_document_requests_organization_id', 'document_requests', ['organization_id'])
    op.create_index('ix_document_requests_candidate_user_id', 'document_requests', ['candidate_user_id'])
    op.create_index('ix_document_requests_status', 'document_requests', ['status'])

    op.create_table(
        'document_share_grants',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('document_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('candidate_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('document_request_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('granted_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('revocation_reason', sa.Text(), nullable=True),
        *_soft_delete_columns(),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id']),
        sa.ForeignKeyConstraint(['document_request_id'], ['document_requests.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_document_share_grants_document_id', 'document_share_grants', ['document_id'])
    op.create_index('ix_document_share_grants_business_user_id', 'document_share_grants', ['business_user_id'])
    op.create_index('ix_document_share_grants_application_id', 'document_share_grants', ['application_id'])
    op.create_index(
        'ix_document_share_grants_document_business',
        'document_share_grants',
        ['document_id', 'business_user_id'],
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_id', sa.String(length=100), nullable=False),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_organization_id', 'audit_logs', ['organization_id'])
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])


def downgrade() -> None:
    """Drop the recruitment core schema"""
    for table in (
        'audit_logs',
        'document_share_grants',
        'document_requests',
        'documents',
        'conversation_ratings',
        'messages',
        'conversation_participants',
        'conversations',
        'pre_hire_confirmations',
        'application_status_history',
        'applications',
        'organization_members',
    ):
        op.drop_table(table)

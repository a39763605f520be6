"""Initial StaffHub schema

Revision ID: 202610010900
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '202610010900'
down_revision = None
branch_labels = None
depends_on = None

# Enum columns are stored by value in VARCHAR (native_enum=False)
ENUM = sa.String(50)


def _pk():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _fk(name, target, ondelete, nullable=True, index=False):
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(f'{target}.id', ondelete=ondelete),
        nullable=nullable,
        index=index,
    )


def _created():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def _updated():
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def _ts(name, nullable=True):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    # ------------------------------
    # Organization
    # ------------------------------
    op.create_table(
        'properties',
        _pk(),
        sa.Column('name', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('property_code', sa.String(20)),
        sa.Column('address', sa.String(500)),
        sa.Column('city', sa.String(120)),
        sa.Column('country', sa.String(120)),
        sa.Column('phone', sa.String(50)),
        sa.Column('is_headquarters', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        _created(),
        _updated(),
    )

    op.create_table(
        'departments',
        _pk(),
        _fk('property_id', 'properties', 'CASCADE', nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        _created(),
        _updated(),
        sa.UniqueConstraint('property_id', 'name', name='uq_departments_property_name'),
    )

    op.create_table(
        'profiles',
        _pk(),
        _fk('property_id', 'properties', 'SET NULL', index=True),
        _fk('department_id', 'departments', 'SET NULL', index=True),
        _fk('reporting_to', 'profiles', 'SET NULL'),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('job_title', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('avatar_url', sa.String(500)),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('hire_date', sa.Date()),
        sa.Column('role', ENUM, nullable=False, server_default='staff'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('failed_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_locked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='1'),
        _created(),
        _updated(),
        sa.Index('ix_profiles_role', 'role'),
        sa.Index('ix_profiles_reporting_to', 'reporting_to'),
    )

    # ------------------------------
    # Approval workflow
    # ------------------------------
    op.create_table(
        'requests',
        _pk(),
        sa.Column('request_no', sa.Integer(), nullable=False, unique=True, index=True),
        sa.Column('entity_type', ENUM, nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True)),
        _fk('requester_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('supervisor_id', 'profiles', 'SET NULL'),
        _fk('current_assignee_id', 'profiles', 'SET NULL', index=True),
        _fk('property_id', 'properties', 'SET NULL', index=True),
        sa.Column('status', ENUM, nullable=False, server_default='draft'),
        _ts('submitted_at'),
        _ts('closed_at'),
        sa.Column('metadata', sa.JSON(), nullable=False),
        _created(),
        _updated(),
        sa.Index('ix_requests_status', 'status'),
        sa.Index('ix_requests_entity', 'entity_type', 'entity_id'),
    )

    op.create_table(
        'request_steps',
        _pk(),
        _fk('request_id', 'requests', 'CASCADE', nullable=False, index=True),
        sa.Column('step_order', sa.Integer(), nullable=False),
        _fk('assignee_id', 'profiles', 'SET NULL'),
        sa.Column('assignee_role', sa.String(50)),
        sa.Column('status', ENUM, nullable=False, server_default='waiting'),
        _ts('acted_at'),
        sa.Column('comment', sa.Text()),
        _fk('created_by', 'profiles', 'SET NULL'),
        _created(),
        sa.UniqueConstraint('request_id', 'step_order', name='uq_request_steps_order'),
    )

    op.create_table(
        'request_comments',
        _pk(),
        _fk('request_id', 'requests', 'CASCADE', nullable=False, index=True),
        _fk('author_id', 'profiles', 'CASCADE', nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('visibility', ENUM, nullable=False, server_default='all'),
        _created(),
    )

    op.create_table(
        'request_events',
        _pk(),
        _fk('request_id', 'requests', 'CASCADE', nullable=False, index=True),
        _fk('actor_id', 'profiles', 'SET NULL'),
        sa.Column('event_type', ENUM, nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        _created(),
    )

    # ------------------------------
    # HR
    # ------------------------------
    op.create_table(
        'leave_requests',
        _pk(),
        _fk('requester_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('property_id', 'properties', 'SET NULL', index=True),
        _fk('department_id', 'departments', 'SET NULL', index=True),
        sa.Column('leave_type', ENUM, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text()),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        _fk('workflow_request_id', 'requests', 'SET NULL'),
        _created(),
        _updated(),
    )

    op.create_table(
        'promotions',
        _pk(),
        _fk('employee_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('promoted_by', 'profiles', 'SET NULL'),
        sa.Column('old_role', ENUM),
        sa.Column('new_role', ENUM, nullable=False),
        sa.Column('old_job_title', sa.String(255)),
        sa.Column('new_job_title', sa.String(255)),
        _fk('old_department_id', 'departments', 'SET NULL'),
        _fk('new_department_id', 'departments', 'SET NULL'),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        _created(),
        _updated(),
    )

    op.create_table(
        'transfers',
        _pk(),
        _fk('employee_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('requested_by', 'profiles', 'SET NULL'),
        _fk('from_property_id', 'properties', 'SET NULL'),
        _fk('to_property_id', 'properties', 'CASCADE', nullable=False),
        _fk('from_department_id', 'departments', 'SET NULL'),
        _fk('to_department_id', 'departments', 'SET NULL'),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        _created(),
        _updated(),
    )

    # ------------------------------
    # Notifications and outbox
    # ------------------------------
    op.create_table(
        'notifications',
        _pk(),
        _fk('user_id', 'profiles', 'CASCADE', nullable=False, index=True),
        sa.Column('type', ENUM, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(500)),
        sa.Column('entity_type', sa.String(50)),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True)),
        sa.Column('metadata', sa.JSON(), nullable=False),
        _ts('read_at'),
        _created(),
        sa.Index('ix_notifications_user_read', 'user_id', 'read_at'),
    )

    op.create_table(
        'notification_batches',
        _pk(),
        sa.Column('job_type', sa.String(100), nullable=False),
        sa.Column('total_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('processed_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('failed_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        sa.Column('metadata', sa.JSON(), nullable=False),
        _fk('created_by', 'profiles', 'SET NULL'),
        _ts('started_at'),
        _ts('completed_at'),
        _created(),
    )

    op.create_table(
        'notification_queue',
        _pk(),
        _fk('batch_id', 'notification_batches', 'CASCADE', nullable=False, index=True),
        _fk('user_id', 'profiles', 'CASCADE', nullable=False),
        sa.Column('notification_type', ENUM, nullable=False),
        sa.Column('notification_data', sa.JSON(), nullable=False),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_attempts', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('error_message', sa.Text()),
        _ts('processed_at'),
        _created(),
        sa.Index('ix_notification_queue_batch_status', 'batch_id', 'status'),
    )

    op.create_table(
        'email_outbox',
        _pk(),
        sa.Column('to_email', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('template', sa.String(100)),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_attempts', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('error_message', sa.Text()),
        sa.Column('provider_message_id', sa.String(255)),
        _ts('sent_at'),
        _created(),
    )

    op.create_table(
        'scheduled_reminders',
        _pk(),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        _fk('user_id', 'profiles', 'CASCADE'),
        sa.Column('reminder_type', ENUM, nullable=False),
        _ts('scheduled_for', nullable=False),
        _ts('sent_at'),
        sa.Column('status', sa.String(20), nullable=False, server_default='sent'),
        sa.Index('ix_scheduled_reminders_entity', 'entity_type', 'entity_id', 'reminder_type'),
    )

    # ------------------------------
    # Training
    # ------------------------------
    op.create_table(
        'training_modules',
        _pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('content', sa.Text()),
        sa.Column('category', sa.String(100)),
        sa.Column('estimated_minutes', sa.Integer()),
        sa.Column('passing_score', sa.Integer(), nullable=False, server_default='70'),
        sa.Column('certificate_validity_days', sa.Integer()),
        _fk('property_id', 'properties', 'CASCADE', index=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        _fk('created_by', 'profiles', 'SET NULL'),
        _created(),
        _updated(),
    )

    op.create_table(
        'training_assignments',
        _pk(),
        _fk('module_id', 'training_modules', 'CASCADE', nullable=False, index=True),
        _fk('assigned_to_user_id', 'profiles', 'CASCADE', index=True),
        _fk('assigned_by_user_id', 'profiles', 'SET NULL'),
        _ts('deadline'),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False, server_default='false'),
        _ts('completed_at'),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default='false'),
        _created(),
        sa.Index('ix_training_assignments_deadline', 'deadline'),
    )

    op.create_table(
        'training_progress',
        _pk(),
        _fk('user_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('module_id', 'training_modules', 'CASCADE', nullable=False),
        _fk('assignment_id', 'training_assignments', 'SET NULL'),
        sa.Column('status', ENUM, nullable=False, server_default='not_started'),
        sa.Column('progress_percent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quiz_score', sa.Integer()),
        _ts('started_at'),
        _ts('completed_at'),
        sa.UniqueConstraint('user_id', 'module_id', name='uq_training_progress_user_module'),
    )

    op.create_table(
        'training_certificates',
        _pk(),
        _fk('progress_id', 'training_progress', 'CASCADE', nullable=False),
        _fk('user_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('module_id', 'training_modules', 'CASCADE', nullable=False),
        sa.Column('certificate_no', sa.String(50), nullable=False, unique=True),
        _ts('issued_at', nullable=False),
        _ts('expires_at'),
    )

    # ------------------------------
    # Knowledge base
    # ------------------------------
    op.create_table(
        'documents',
        _pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('content', sa.Text()),
        sa.Column('category', sa.String(100)),
        sa.Column('doc_type', ENUM, nullable=False, server_default='other'),
        sa.Column('status', ENUM, nullable=False, server_default='DRAFT', index=True),
        sa.Column('visibility', ENUM, nullable=False, server_default='property'),
        _fk('property_id', 'properties', 'CASCADE', index=True),
        _fk('department_id', 'departments', 'SET NULL'),
        sa.Column('requires_acknowledgment', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        _fk('created_by', 'profiles', 'SET NULL'),
        _ts('published_at'),
        _created(),
        _updated(),
    )

    op.create_table(
        'document_approvals',
        _pk(),
        _fk('document_id', 'documents', 'CASCADE', nullable=False, index=True),
        sa.Column('approver_role', ENUM, nullable=False),
        sa.Column('status', ENUM, nullable=False, server_default='pending'),
        _fk('reviewed_by', 'profiles', 'SET NULL'),
        sa.Column('comment', sa.Text()),
        _ts('reviewed_at'),
        _created(),
    )

    op.create_table(
        'document_acknowledgments',
        _pk(),
        _fk('document_id', 'documents', 'CASCADE', nullable=False),
        _fk('user_id', 'profiles', 'CASCADE', nullable=False),
        _ts('acknowledged_at', nullable=False),
        sa.UniqueConstraint('document_id', 'user_id', name='uq_document_ack_user'),
    )

    op.create_table(
        'knowledge_questions',
        _pk(),
        _fk('document_id', 'documents', 'CASCADE', index=True),
        _fk('module_id', 'training_modules', 'CASCADE', index=True),
        sa.Column('question_type', ENUM, nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_answer', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text()),
        sa.Column('difficulty', sa.String(20), nullable=False, server_default='medium'),
        _fk('created_by', 'profiles', 'SET NULL'),
        _created(),
    )

    # ------------------------------
    # Communication
    # ------------------------------
    op.create_table(
        'announcements',
        _pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('priority', ENUM, nullable=False, server_default='normal'),
        sa.Column('is_pinned', sa.Boolean(), nullable=False, server_default='false'),
        _fk('property_id', 'properties', 'CASCADE', index=True),
        sa.Column('target_roles', sa.JSON(), nullable=False),
        sa.Column('target_department_ids', sa.JSON(), nullable=False),
        _ts('scheduled_at'),
        _ts('expires_at'),
        _fk('created_by', 'profiles', 'SET NULL'),
        _created(),
        _updated(),
    )

    op.create_table(
        'announcement_reads',
        _pk(),
        _fk('announcement_id', 'announcements', 'CASCADE', nullable=False),
        _fk('user_id', 'profiles', 'CASCADE', nullable=False),
        _ts('read_at', nullable=False),
        sa.UniqueConstraint('announcement_id', 'user_id', name='uq_announcement_read_user'),
    )

    op.create_table(
        'messages',
        _pk(),
        _fk('sender_id', 'profiles', 'CASCADE', nullable=False, index=True),
        _fk('recipient_id', 'profiles', 'CASCADE', index=True),
        _fk('property_id', 'properties', 'SET NULL'),
        sa.Column('subject', sa.String(255)),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('message_type', ENUM, nullable=False, server_default='direct'),
        sa.Column('status', ENUM, nullable=False, server_default='sent'),
        _fk('parent_message_id', 'messages', 'SET NULL'),
        _ts('read_at'),
        _created(),
        sa.Index('ix_messages_recipient_status', 'recipient_id', 'status'),
    )

    # ------------------------------
    # Operations
    # ------------------------------
    op.create_table(
        'task_templates',
        _pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('priority', ENUM, nullable=False, server_default='medium'),
        _fk('assigned_to_id', 'profiles', 'SET NULL'),
        _fk('property_id', 'properties', 'CASCADE', index=True),
        _fk('department_id', 'departments', 'SET NULL'),
        sa.Column('recurrence_type', ENUM, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        _ts('last_run_at'),
        sa.Column('next_run_at', sa.DateTime(timezone=True), index=True),
        _fk('created_by_id', 'profiles', 'SET NULL'),
        _created(),
    )

    op.create_table(
        'tasks',
        _pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', ENUM, nullable=False, server_default='open'),
        sa.Column('priority', ENUM, nullable=False, server_default='medium'),
        _fk('assigned_to_id', 'profiles', 'SET NULL', index=True),
        _fk('created_by_id', 'profiles', 'SET NULL'),
        _fk('property_id', 'properties', 'CASCADE', index=True),
        _fk('department_id', 'departments', 'SET NULL'),
        _ts('due_date'),
        _ts('completed_at'),
        _fk('template_id', 'task_templates', 'SET NULL'),
        _created(),
        _updated(),
        sa.Index('ix_tasks_status', 'status'),
        sa.Index('ix_tasks_assignee_status', 'assigned_to_id', 'status'),
    )

    op.create_table(
        'maintenance_tickets',
        _pk(),
        sa.Column('ticket_no', sa.Integer(), nullable=False, unique=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        _fk('property_id', 'properties', 'CASCADE', nullable=False, index=True),
        sa.Column('room_number', sa.String(20)),
        sa.Column('location', sa.String(255)),
        sa.Column('category', ENUM, nullable=False, server_default='general'),
        sa.Column('priority', ENUM, nullable=False, server_default='medium'),
        sa.Column('status', ENUM, nullable=False, server_default='open'),
        _fk('reported_by_id', 'profiles', 'SET NULL'),
        _fk('assigned_to_id', 'profiles', 'SET NULL', index=True),
        sa.Column('estimated_hours', sa.Float()),
        sa.Column('ai_triage_notes', sa.Text()),
        _ts('ai_triaged_at'),
        _ts('completed_at'),
        _created(),
        _updated(),
        sa.Index('ix_maintenance_tickets_status', 'status'),
    )

    op.create_table(
        'maintenance_schedules',
        _pk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        _fk('property_id', 'properties', 'CASCADE', nullable=False, index=True),
        sa.Column('category', ENUM, nullable=False, server_default='general'),
        sa.Column('priority', ENUM, nullable=False, server_default='medium'),
        sa.Column('frequency', ENUM, nullable=False),
        _fk('assigned_to_id', 'profiles', 'SET NULL'),
        _fk('created_by_id', 'profiles', 'SET NULL'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('next_run_at', sa.DateTime(timezone=True), nullable=False, index=True),
        _ts('last_generated_at'),
        _created(),
        _updated(),
    )


def downgrade() -> None:
    for table in (
        'maintenance_schedules',
        'maintenance_tickets',
        'tasks',
        'task_templates',
        'messages',
        'announcement_reads',
        'announcements',
        'knowledge_questions',
        'document_acknowledgments',
        'document_approvals',
        'documents',
        'training_certificates',
        'training_progress',
        'training_assignments',
        'training_modules',
        'scheduled_reminders',
        'email_outbox',
        'notification_queue',
        'notification_batches',
        'notifications',
        'transfers',
        'promotions',
        'leave_requests',
        'request_events',
        'request_comments',
        'request_steps',
        'requests',
        'profiles',
        'departments',
        'properties',
    ):
        op.drop_table(table)

"""placement_baseline

Revision ID: 5c1e7a90b3d2
Revises:
Create Date: 2026-10-18 10:12:41.118204

Creates users, companies, drives, applications and application_status_history.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1e7a90b3d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ACTIVE_PAIR_PREDICATE = sa.text("status != 'WITHDRAWN'")


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    """
    Only creates tables that don't exist yet, so it is safe against a
    database bootstrapped by init_db().
    """
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('role', sa.String(length=16), nullable=False),
            sa.Column('department', sa.String(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('roll_number', sa.String(), nullable=True),
            sa.Column('cgpa', sa.Numeric(precision=4, scale=2), nullable=True),
            sa.Column('backlogs', sa.Integer(), nullable=False),
            sa.Column('graduation_year', sa.Integer(), nullable=True),
            sa.Column('profile_status', sa.String(length=16), nullable=False),
            sa.Column('submitted_at', sa.DateTime(), nullable=True),
            sa.Column('reviewed_by', sa.Integer(), nullable=True),
            sa.Column('reviewed_at', sa.DateTime(), nullable=True),
            sa.Column('rejection_reason', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('roll_number')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)
        op.create_index(op.f('ix_users_department'), 'users', ['department'], unique=False)
        op.create_index('idx_users_role_department_status', 'users', ['role', 'department', 'profile_status'], unique=False)

    if not table_exists('companies'):
        op.create_table('companies',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('industry', sa.String(length=255), nullable=True),
            sa.Column('website', sa.String(length=512), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_companies_id'), 'companies', ['id'], unique=False)
        op.create_index(op.f('ix_companies_name'), 'companies', ['name'], unique=True)

    if not table_exists('drives'):
        op.create_table('drives',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=False),
            sa.Column('job_role', sa.String(length=255), nullable=False),
            sa.Column('job_description', sa.Text(), nullable=True),
            sa.Column('job_type', sa.String(length=16), nullable=False),
            sa.Column('package', sa.String(length=255), nullable=False),
            sa.Column('location', sa.String(length=255), nullable=True),
            sa.Column('application_deadline', sa.DateTime(), nullable=False),
            sa.Column('drive_date', sa.DateTime(), nullable=False),
            sa.Column('min_cgpa', sa.Numeric(precision=4, scale=2), nullable=False),
            sa.Column('allowed_departments', sa.JSON(), nullable=False),
            sa.Column('max_backlogs', sa.Integer(), nullable=False),
            sa.Column('graduation_years', sa.JSON(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('created_by', sa.Integer(), nullable=True),
            sa.Column('closed_at', sa.DateTime(), nullable=True),
            sa.Column('closed_by', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
            sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
            sa.ForeignKeyConstraint(['closed_by'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_drives_id'), 'drives', ['id'], unique=False)
        op.create_index(op.f('ix_drives_company_id'), 'drives', ['company_id'], unique=False)
        op.create_index(op.f('ix_drives_status'), 'drives', ['status'], unique=False)
        op.create_index('idx_drives_status_deadline', 'drives', ['status', 'application_deadline'], unique=False)

    if not table_exists('applications'):
        op.create_table('applications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('drive_id', sa.Integer(), nullable=False),
            sa.Column('student_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('current_round', sa.String(length=255), nullable=True),
            sa.Column('feedback', sa.Text(), nullable=True),
            sa.Column('applied_at', sa.DateTime(), nullable=False),
            sa.Column('last_updated', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['drive_id'], ['drives.id'], ),
            sa.ForeignKeyConstraint(['student_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_applications_id'), 'applications', ['id'], unique=False)
        op.create_index(op.f('ix_applications_drive_id'), 'applications', ['drive_id'], unique=False)
        op.create_index(op.f('ix_applications_student_id'), 'applications', ['student_id'], unique=False)
        op.create_index(op.f('ix_applications_status'), 'applications', ['status'], unique=False)
        op.create_index('idx_applications_student_status', 'applications', ['student_id', 'status'], unique=False)
        # One live application per (drive, student); withdrawn rows are exempt
        op.create_index(
            'uq_applications_active_pair',
            'applications',
            ['drive_id', 'student_id'],
            unique=True,
            postgresql_where=ACTIVE_PAIR_PREDICATE,
            sqlite_where=ACTIVE_PAIR_PREDICATE,
        )

    if not table_exists('application_status_history'):
        op.create_table('application_status_history',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('application_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('actor_id', sa.Integer(), nullable=False),
            sa.Column('actor_role', sa.String(length=16), nullable=False),
            sa.Column('comment', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ),
            sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_application_status_history_id'), 'application_status_history', ['id'], unique=False)
        op.create_index(op.f('ix_application_status_history_application_id'), 'application_status_history', ['application_id'], unique=False)


def downgrade() -> None:
    op.drop_table('application_status_history')
    op.drop_table('applications')
    op.drop_table('drives')
    op.drop_table('companies')
    op.drop_table('users')

"""Initial schema: users, leave records, reconciliation reports, audit exports

Revision ID: 001_initial
Revises:
Create Date: 2026-02-01

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LEAVE_CATEGORY = sa.Enum(
    'ANNUAL', 'MEDICAL_MC', 'MEDICAL_NO_MC', 'UNPAID', 'COMPASSIONATE', name='leavecategory'
)
LEAVE_STATUS = sa.Enum(
    'PENDING', 'APPROVED_MANAGER', 'APPROVED_PARENT', 'REJECTED', name='leavestatus'
)


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('parent_company', sa.String(), nullable=True),
        sa.Column('daily_rate', sa.Numeric(12, 2), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_parent_company'), 'users', ['parent_company'], unique=False)

    op.create_table(
        'parent_companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('contact_person', sa.String(), nullable=True),
        sa.Column('contact_email', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_parent_companies_id'), 'parent_companies', ['id'], unique=False)

    op.create_table(
        'leave_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('staff_email', sa.String(), nullable=False),
        sa.Column('staff_name', sa.String(), nullable=False),
        sa.Column('parent_company', sa.String(), nullable=False),
        sa.Column('leave_category', LEAVE_CATEGORY, nullable=False),
        sa.Column('is_chargeable', sa.Boolean(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('parent_company_ref_id', sa.String(), nullable=True),
        sa.Column('daily_rate_at_leave', sa.Numeric(12, 2), nullable=False),
        sa.Column('calculated_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', LEAVE_STATUS, nullable=False, server_default='PENDING'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('decided_by_id', sa.Integer(), nullable=True),
        sa.Column('decided_by_email', sa.String(), nullable=True),
        _timestamp('manager_approved_at', nullable=True),
        _timestamp('rejected_at', nullable=True),
        _timestamp('parent_acknowledged_at', nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['staff_id'], ['users.id']),
        sa.ForeignKeyConstraint(['decided_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('start_date <= end_date', name='check_start_date_le_end_date'),
        sa.CheckConstraint('total_days >= 1', name='check_total_days_positive'),
    )
    op.create_index(op.f('ix_leave_records_id'), 'leave_records', ['id'], unique=False)
    op.create_index(op.f('ix_leave_records_staff_id'), 'leave_records', ['staff_id'], unique=False)
    op.create_index(op.f('ix_leave_records_parent_company'), 'leave_records', ['parent_company'], unique=False)
    op.create_index(
        'ix_leave_records_reconciliation', 'leave_records',
        ['parent_company', 'status', 'start_date'], unique=False,
    )

    op.create_table(
        'reconciliation_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('parent_company', sa.String(), nullable=False),
        sa.Column('generated_by_id', sa.Integer(), nullable=True),
        sa.Column('generated_by_email', sa.String(), nullable=True),
        _timestamp('generated_at'),
        sa.Column('total_staff', sa.Integer(), nullable=False),
        sa.Column('total_leaves', sa.Integer(), nullable=False),
        sa.Column('total_chargeable_days', sa.Integer(), nullable=False),
        sa.Column('total_billed_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_actual_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_variance', sa.Numeric(14, 2), nullable=False),
        sa.Column('variance_percentage', sa.Numeric(14, 2), nullable=True),
        sa.Column('has_discrepancies', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('needs_review', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(), nullable=False, server_default='generated'),
        sa.Column('actual_amount_source', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['generated_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_reconciliation_reports_id'), 'reconciliation_reports', ['id'], unique=False)
    op.create_index(
        'ix_reconciliation_reports_key', 'reconciliation_reports', ['month', 'parent_company'], unique=False,
    )

    op.create_table(
        'reconciliation_line_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('leave_record_id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('staff_name', sa.String(), nullable=False),
        sa.Column('staff_email', sa.String(), nullable=False),
        sa.Column('leave_category', LEAVE_CATEGORY, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('daily_rate_at_leave', sa.Numeric(12, 2), nullable=False),
        sa.Column('calculated_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('actual_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('variance', sa.Numeric(12, 2), nullable=False),
        sa.Column('variance_percent', sa.Numeric(14, 1), nullable=True),
        sa.ForeignKeyConstraint(['report_id'], ['reconciliation_reports.id']),
        sa.ForeignKeyConstraint(['leave_record_id'], ['leave_records.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_reconciliation_line_items_id'), 'reconciliation_line_items', ['id'], unique=False)
    op.create_index(
        op.f('ix_reconciliation_line_items_report_id'), 'reconciliation_line_items', ['report_id'], unique=False,
    )
    op.create_index(
        op.f('ix_reconciliation_line_items_leave_record_id'), 'reconciliation_line_items',
        ['leave_record_id'], unique=False,
    )

    op.create_table(
        'parent_company_charges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('leave_record_id', sa.Integer(), nullable=False),
        sa.Column('parent_company', sa.String(), nullable=False),
        sa.Column('actual_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('invoice_reference', sa.String(), nullable=True),
        sa.Column('reported_by_id', sa.Integer(), nullable=True),
        _timestamp('reported_at'),
        sa.ForeignKeyConstraint(['leave_record_id'], ['leave_records.id']),
        sa.ForeignKeyConstraint(['reported_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('leave_record_id'),
    )
    op.create_index(op.f('ix_parent_company_charges_id'), 'parent_company_charges', ['id'], unique=False)
    op.create_index(
        op.f('ix_parent_company_charges_parent_company'), 'parent_company_charges', ['parent_company'], unique=False,
    )

    op.create_table(
        'audit_exports',
        sa.Column('id', sa.Integer(), nullable=False),
        _timestamp('exported_at'),
        sa.Column('exported_by', sa.String(), nullable=False),
        sa.Column('exported_by_role', sa.String(), nullable=False),
        sa.Column('record_count', sa.Integer(), nullable=False),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('filters', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_exports_id'), 'audit_exports', ['id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_audit_exports_id'), table_name='audit_exports')
    op.drop_table('audit_exports')
    op.drop_index(op.f('ix_parent_company_charges_parent_company'), table_name='parent_company_charges')
    op.drop_index(op.f('ix_parent_company_charges_id'), table_name='parent_company_charges')
    op.drop_table('parent_company_charges')
    op.drop_index(op.f('ix_reconciliation_line_items_leave_record_id'), table_name='reconciliation_line_items')
    op.drop_index(op.f('ix_reconciliation_line_items_report_id'), table_name='reconciliation_line_items')
    op.drop_index(op.f('ix_reconciliation_line_items_id'), table_name='reconciliation_line_items')
    op.drop_table('reconciliation_line_items')
    op.drop_index('ix_reconciliation_reports_key', table_name='reconciliation_reports')
    op.drop_index(op.f('ix_reconciliation_reports_id'), table_name='reconciliation_reports')
    op.drop_table('reconciliation_reports')
    op.drop_index('ix_leave_records_reconciliation', table_name='leave_records')
    op.drop_index(op.f('ix_leave_records_parent_company'), table_name='leave_records')
    op.drop_index(op.f('ix_leave_records_staff_id'), table_name='leave_records')
    op.drop_index(op.f('ix_leave_records_id'), table_name='leave_records')
    op.drop_table('leave_records')
    op.drop_index(op.f('ix_parent_companies_id'), table_name='parent_companies')
    op.drop_table('parent_companies')
    op.drop_index(op.f('ix_users_parent_company'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
    LEAVE_STATUS.drop(op.get_bind(), checkfirst=True)
    LEAVE_CATEGORY.drop(op.get_bind(), checkfirst=True)

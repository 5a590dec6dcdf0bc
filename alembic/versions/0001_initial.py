"""Initial leave ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _amount(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(9, 2), server_default="0", nullable=False)


def upgrade() -> None:
    op.create_table(
        "leave_policy",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=10), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False),
        sa.Column("accrual_amount", sa.Numeric(9, 4), nullable=False),
        sa.Column("accrual_cadence", sa.String(length=20), nullable=False),
        sa.Column("carry_over_max", sa.Numeric(9, 2), nullable=True),
        sa.Column("exclude_weekends", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("exclude_holidays", sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "code", name="uq_policy_company_code"),
    )
    op.create_index(op.f("ix_leave_policy_company_id"), "leave_policy", ["company_id"], unique=False)

    op.create_table(
        "leave_balance",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("policy_id", sa.Uuid(), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        _amount("opening"),
        _amount("accrued"),
        _amount("taken"),
        _amount("adjusted"),
        _amount("forfeited"),
        _amount("closing"),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["policy_id"], ["leave_policy.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "policy_id", "period_start", name="uq_balance_employee_policy_period"),
        sa.CheckConstraint("period_start < period_end", name="ck_balance_period_order"),
    )
    op.create_index(op.f("ix_leave_balance_company_id"), "leave_balance", ["company_id"], unique=False)
    op.create_index(op.f("ix_leave_balance_policy_id"), "leave_balance", ["policy_id"], unique=False)
    op.create_index("ix_balance_employee_policy", "leave_balance", ["employee_id", "policy_id"], unique=False)

    op.create_table(
        "leave_request",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("policy_id", sa.Uuid(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("unit", sa.String(length=10), nullable=False),
        sa.Column("quantity", sa.Numeric(9, 2), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="DRAFT", nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approver_id", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_note", sa.String(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["policy_id"], ["leave_policy.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_date <= end_date", name="ck_request_date_order"),
        sa.CheckConstraint("quantity > 0", name="ck_request_quantity_positive"),
    )
    op.create_index(op.f("ix_leave_request_company_id"), "leave_request", ["company_id"], unique=False)
    op.create_index(op.f("ix_leave_request_policy_id"), "leave_request", ["policy_id"], unique=False)
    op.create_index(op.f("ix_leave_request_status"), "leave_request", ["status"], unique=False)
    op.create_index("ix_request_company_status", "leave_request", ["company_id", "status"], unique=False)
    op.create_index("ix_request_employee_policy", "leave_request", ["employee_id", "policy_id"], unique=False)

    op.create_table(
        "company_holiday",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", "date", name="uq_holiday_company_date"),
    )
    op.create_index(op.f("ix_company_holiday_company_id"), "company_holiday", ["company_id"], unique=False)

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_log_company_id"), "audit_log", ["company_id"], unique=False)
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"], unique=False)
    op.create_index(
        "ix_audit_company_entity", "audit_log", ["company_id", "entity_type", "entity_id"], unique=False
    )


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("company_holiday")
    op.drop_table("leave_request")
    op.drop_table("leave_balance")
    op.drop_table("leave_policy")

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import AMOUNT_TYPE, TimestampMixin, UUIDBase
from leave_ledger.models.enums import RequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_request_company_status", "company_id", "status"),
        sa.Index("ix_request_employee_policy", "employee_id", "policy_id"),
        sa.CheckConstraint("start_date <= end_date", name="ck_request_date_order"),
        sa.CheckConstraint("quantity > 0", name="ck_request_quantity_positive"),
    )

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_policy.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    unit: str = Field(max_length=10)
    quantity: Decimal = Field(sa_type=AMOUNT_TYPE)  # ty: ignore[invalid-argument-type]
    reason: str | None = None
    status: str = Field(
        default=RequestStatus.DRAFT, max_length=20, index=True, sa_column_kwargs={"server_default": "DRAFT"}
    )
    submitted_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    approver_id: uuid.UUID | None = None
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decision_note: str | None = None

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import AMOUNT_TYPE, TimestampMixin, UpdatedAtMixin, UUIDBase

_ZERO = {"server_default": "0"}


class LeaveBalance(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """One ledger period of an employee's balance for a policy.

    ``closing`` is always written by the ledger writer as
    ``opening + accrued + adjusted - taken``; ``forfeited`` records carry-over
    dropped when the period was opened and is not part of that formula.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "policy_id", "period_start", name="uq_balance_employee_policy_period"),
        sa.CheckConstraint("period_start < period_end", name="ck_balance_period_order"),
        sa.Index("ix_balance_employee_policy", "employee_id", "policy_id"),
    )

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_policy.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    period_start: date
    period_end: date
    opening: Decimal = Field(default=Decimal("0"), sa_type=AMOUNT_TYPE, sa_column_kwargs=_ZERO)  # ty: ignore[invalid-argument-type]
    accrued: Decimal = Field(default=Decimal("0"), sa_type=AMOUNT_TYPE, sa_column_kwargs=_ZERO)  # ty: ignore[invalid-argument-type]
    taken: Decimal = Field(default=Decimal("0"), sa_type=AMOUNT_TYPE, sa_column_kwargs=_ZERO)  # ty: ignore[invalid-argument-type]
    adjusted: Decimal = Field(default=Decimal("0"), sa_type=AMOUNT_TYPE, sa_column_kwargs=_ZERO)  # ty: ignore[invalid-argument-type]
    forfeited: Decimal = Field(default=Decimal("0"), sa_type=AMOUNT_TYPE, sa_column_kwargs=_ZERO)  # ty: ignore[invalid-argument-type]
    closing: Decimal = Field(default=Decimal("0"), sa_type=AMOUNT_TYPE, sa_column_kwargs=_ZERO)  # ty: ignore[invalid-argument-type]
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})

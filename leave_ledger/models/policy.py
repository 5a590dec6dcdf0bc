# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import AMOUNT_TYPE, RATE_TYPE, TimestampMixin, UpdatedAtMixin, UUIDBase


class LeavePolicy(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A company's leave type (e.g. ANNUAL, SICK) with its accrual rule."""

    __tablename__ = "leave_policy"
    __table_args__ = (sa.UniqueConstraint("company_id", "code", name="uq_policy_company_code"),)

    company_id: uuid.UUID = Field(index=True)
    code: str = Field(max_length=10)
    name: str = Field(max_length=100)
    unit: str = Field(max_length=10)
    accrual_amount: Decimal = Field(sa_type=RATE_TYPE)  # ty: ignore[invalid-argument-type]
    accrual_cadence: str = Field(max_length=20)
    carry_over_max: Decimal | None = Field(default=None, sa_type=AMOUNT_TYPE)  # ty: ignore[invalid-argument-type]
    exclude_weekends: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    exclude_holidays: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})

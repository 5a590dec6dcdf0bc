# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from leave_ledger.models.enums import LeaveUnit

# ---------------------------------------------------------------------------
# Ledger period schemas
# ---------------------------------------------------------------------------


class LedgerPeriodResponse(BaseModel):
    """A single ledger period for an employee and policy."""

    id: uuid.UUID
    employee_id: uuid.UUID
    policy_id: uuid.UUID
    period_start: date
    period_end: date
    opening: Decimal
    accrued: Decimal
    taken: Decimal
    adjusted: Decimal
    forfeited: Decimal
    closing: Decimal
    version: int
    updated_at: datetime


class LedgerHistoryResponse(BaseModel):
    """Paginated ledger periods, newest first."""

    items: list[LedgerPeriodResponse]
    total: int


# ---------------------------------------------------------------------------
# Projected balance schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Current-period balance for one policy, including pending reservations."""

    policy_id: uuid.UUID
    policy_code: str
    policy_name: str
    unit: LeaveUnit
    period: LedgerPeriodResponse
    pending: Decimal
    available: Decimal


class BalanceListResponse(BaseModel):
    """All policy balances for an employee."""

    items: list[BalanceResponse]
    total: int


class CoverageResponse(BaseModel):
    """Answer to "can this balance cover the requested leave"."""

    policy_id: uuid.UUID
    as_of: date
    quantity: Decimal
    available: Decimal
    can_cover: bool


# ---------------------------------------------------------------------------
# Adjustment request schema
# ---------------------------------------------------------------------------


class CreateAdjustmentRequest(BaseModel):
    """Request body for an admin balance adjustment."""

    employee_id: uuid.UUID
    policy_id: uuid.UUID
    effective_on: date
    amount: Decimal = Field(
        max_digits=9,
        decimal_places=2,
        description="Signed amount in the policy unit: positive to add, negative to deduct",
    )
    reason: str = Field(min_length=1, max_length=1000)

# ruff: noqa: TC003
from __future__ import annotations

import re
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from leave_ledger.models.enums import AccrualCadence, LeaveUnit

_CODE_PATTERN = re.compile(r"^[A-Z0-9_-]{1,10}$")

# ---------------------------------------------------------------------------
# Accrual rule
# ---------------------------------------------------------------------------


class AccrualRule(BaseModel):
    """Structured accrual rule: ``amount`` units earned per ``cadence``."""

    # Stored as Numeric(9, 4).
    amount: Decimal = Field(max_digits=9, decimal_places=4, lt=100000)
    cadence: AccrualCadence


def _normalize_code(value: str) -> str:
    code = value.strip().upper()
    if not _CODE_PATTERN.match(code):
        msg = "code must be 1-10 characters of A-Z, 0-9, '_' or '-'"
        raise ValueError(msg)
    return code


# ---------------------------------------------------------------------------
# API request / response schemas
# ---------------------------------------------------------------------------


class CreatePolicyRequest(BaseModel):
    """Request body for creating a leave policy.

    ``accrual_rule`` may be given structured or as text such as
    ``"25 days per year"``.
    """

    code: str = Field(min_length=1, max_length=10)
    name: str = Field(min_length=1, max_length=100)
    unit: LeaveUnit
    accrual_rule: AccrualRule | str
    carry_over_max: Decimal | None = Field(default=None, ge=0, max_digits=9, decimal_places=2)
    exclude_weekends: bool = True
    exclude_holidays: bool = True

    @field_validator("code")
    @classmethod
    def _validate_code(cls, value: str) -> str:
        return _normalize_code(value)


class UpdatePolicyRequest(BaseModel):
    """Partial update; ``code`` and ``unit`` are immutable."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    accrual_rule: AccrualRule | str | None = None
    carry_over_max: Decimal | None = Field(default=None, ge=0, max_digits=9, decimal_places=2)
    clear_carry_over_max: bool = False
    exclude_weekends: bool | None = None
    exclude_holidays: bool | None = None


class PolicyResponse(BaseModel):
    """Response schema for a leave policy."""

    id: uuid.UUID
    company_id: uuid.UUID
    code: str
    name: str
    unit: LeaveUnit
    accrual_rule: AccrualRule
    carry_over_max: Decimal | None
    exclude_weekends: bool
    exclude_holidays: bool
    created_at: datetime
    updated_at: datetime


class PolicyListResponse(BaseModel):
    """Paginated list of policies."""

    items: list[PolicyResponse]
    total: int

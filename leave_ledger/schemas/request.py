# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leave_ledger.models.enums import LeaveUnit, RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRequestPayload(BaseModel):
    """Request body for creating a leave request.

    ``quantity`` overrides the computed day count (e.g. half days).
    """

    employee_id: uuid.UUID
    policy_id: uuid.UUID
    start_date: date
    end_date: date
    unit: LeaveUnit | None = None
    quantity: Decimal | None = Field(default=None, gt=0, max_digits=9, decimal_places=2)
    reason: str | None = Field(default=None, max_length=1000)
    submit: bool = False

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must be on or after start_date"
            raise ValueError(msg)
        return self


class DecisionPayload(BaseModel):
    """Request body for approve actions."""

    note: str | None = Field(default=None, max_length=1000)


class RejectPayload(BaseModel):
    """Request body for reject actions; a reason is mandatory."""

    reason: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    policy_id: uuid.UUID
    start_date: date
    end_date: date
    unit: LeaveUnit
    quantity: Decimal
    reason: str | None
    status: RequestStatus
    submitted_at: datetime | None
    approver_id: uuid.UUID | None
    approved_at: datetime | None
    decided_at: datetime | None
    decision_note: str | None
    created_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[RequestResponse]
    total: int

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Self

from pydantic import BaseModel, model_validator


class AccrualRunPayload(BaseModel):
    """Body for POST /companies/{company_id}/accruals/run."""

    period_start: date
    period_end: date
    policy_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.period_end <= self.period_start:
            msg = "period_end must be after period_start"
            raise ValueError(msg)
        return self


class AccrualRunResponse(BaseModel):
    """Summary of an accrual run over one period."""

    period_start: date
    period_end: date
    processed: int
    opened: int
    superseded: int
    unchanged: int
    errors: int

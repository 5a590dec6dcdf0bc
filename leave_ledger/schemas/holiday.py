# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class CreateHolidayRequest(BaseModel):
    """A non-working day excluded from request day counts."""

    date: date
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            msg = "name must not be blank"
            raise ValueError(msg)
        return name


class HolidayResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    date: date
    name: str
    # Already skipped by policies that exclude weekends.
    falls_on_weekend: bool
    created_by: uuid.UUID
    created_at: datetime


class HolidayListResponse(BaseModel):
    """Holidays in date order; ``year`` echoes the filter, if any."""

    items: list[HolidayResponse]
    total: int
    year: int | None = None

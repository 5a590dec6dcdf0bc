# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections.abc import Collection
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from leave_ledger.config import get_settings
from leave_ledger.exceptions import InvalidPeriod, InvalidRequest
from leave_ledger.models.enums import LeaveUnit
from leave_ledger.services.accrual import quantize_amount
from leave_ledger.services.employee import get_employee_service
from leave_ledger.services.holiday import holiday_dates_between

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.models.policy import LeavePolicy

_SATURDAY = 5


def count_days(
    start_date: date,
    end_date: date,
    *,
    exclude_weekends: bool = True,
    holidays: Collection[date] = (),
) -> int:
    """Count leave days in the inclusive range, skipping weekends and holidays."""
    if end_date < start_date:
        raise InvalidPeriod(f"End date {end_date} is before start date {start_date}")

    days = 0
    current = start_date
    one_day = timedelta(days=1)
    while current <= end_date:
        if not (exclude_weekends and current.weekday() >= _SATURDAY) and current not in holidays:
            days += 1
        current += one_day
    return days


async def calculate_request_quantity(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    policy: LeavePolicy,
    start_date: date,
    end_date: date,
) -> Decimal:
    """Default quantity for a request, in the policy's unit.

    DAYS policies charge one per counted day. HOURS policies charge the
    employee's standard daily hours per day, falling back to the configured
    default when the directory has no record.
    """
    holidays: set[date] = set()
    if policy.exclude_holidays:
        holidays = await holiday_dates_between(session, company_id, start_date, end_date)

    days = count_days(start_date, end_date, exclude_weekends=policy.exclude_weekends, holidays=holidays)
    if days <= 0:
        raise InvalidRequest("Request covers no working days after excluding weekends and holidays")

    if LeaveUnit(policy.unit) == LeaveUnit.DAYS:
        return Decimal(days)

    employee = await get_employee_service().get_employee(company_id, employee_id)
    daily_hours = employee.standard_daily_hours if employee else get_settings().default_daily_hours
    return quantize_amount(Decimal(days) * daily_hours)

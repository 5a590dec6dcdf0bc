"""Company holiday calendar.

Holidays are only consulted when a request's default quantity is computed;
adding or removing one never re-prices existing requests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.exceptions import AppError, NotFound
from leave_ledger.models.enums import AuditAction, AuditEntityType
from leave_ledger.models.holiday import CompanyHoliday
from leave_ledger.schemas.holiday import HolidayListResponse, HolidayResponse
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.holiday import CreateHolidayRequest

logger = logging.getLogger(__name__)


def _build_holiday_response(holiday: CompanyHoliday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        company_id=holiday.company_id,
        date=holiday.date,
        name=holiday.name,
        falls_on_weekend=holiday.date.weekday() >= 5,
        created_by=holiday.created_by,
        created_at=holiday.created_at,
    )


async def holiday_dates_between(
    session: AsyncSession,
    company_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> set[date]:
    """Company holiday dates in the inclusive range."""
    result = await session.execute(
        select(col(CompanyHoliday.date)).where(
            col(CompanyHoliday.company_id) == company_id,
            col(CompanyHoliday.date) >= start_date,
            col(CompanyHoliday.date) <= end_date,
        )
    )
    return set(result.scalars().all())


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Add a holiday; one per company and date."""
    holiday = CompanyHoliday(
        company_id=auth.company_id,
        date=payload.date,
        name=payload.name,
        created_by=auth.user_id,
    )
    session.add(holiday)

    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise AppError(f"A holiday already exists on {payload.date}", status_code=409) from exc

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await session.commit()
    logger.info("Added holiday %s (%s) for company=%s", holiday.date, holiday.name, holiday.company_id)
    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    company_id: uuid.UUID,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """Holidays in date order, optionally for one calendar year."""
    filters = [col(CompanyHoliday.company_id) == company_id]
    if year is not None:
        filters.append(extract("year", col(CompanyHoliday.date)) == year)

    total = (await session.execute(select(func.count()).select_from(CompanyHoliday).where(*filters))).scalar_one()
    result = await session.execute(
        select(CompanyHoliday).where(*filters).order_by(col(CompanyHoliday.date)).offset(offset).limit(limit)
    )
    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in result.scalars().all()],
        total=total,
        year=year,
    )


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Remove a holiday. Requests already priced keep their quantity."""
    result = await session.execute(
        select(CompanyHoliday).where(
            col(CompanyHoliday.id) == holiday_id,
            col(CompanyHoliday.company_id) == auth.company_id,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFound("Holiday not found")

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )
    removed_on = holiday.date
    await session.delete(holiday)
    await session.commit()
    logger.info("Removed holiday %s for company=%s", removed_on, auth.company_id)

# ruff: noqa: TC003
"""Balance projector: read-side views of the ledger.

Availability is the covering period's closing minus quantities reserved by
SUBMITTED requests that draw on that period.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.exceptions import InvalidPeriod, NoBalancePeriod
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.enums import LeaveUnit, RequestStatus
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.models.request import LeaveRequest
from leave_ledger.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    CoverageResponse,
    LedgerHistoryResponse,
)
from leave_ledger.services.accrual import quantize_amount
from leave_ledger.services.duration import calculate_request_quantity
from leave_ledger.services.ledger import build_period_response, ensure_period, find_covering_period
from leave_ledger.services.policy import get_policy_model

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def pending_quantity(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    since: date,
    *,
    exclude_request_id: uuid.UUID | None = None,
) -> Decimal:
    """Sum of SUBMITTED request quantities starting on or after ``since``."""
    filters = [
        col(LeaveRequest.employee_id) == employee_id,
        col(LeaveRequest.policy_id) == policy_id,
        col(LeaveRequest.status) == RequestStatus.SUBMITTED,
        col(LeaveRequest.start_date) >= since,
    ]
    if exclude_request_id is not None:
        filters.append(col(LeaveRequest.id) != exclude_request_id)

    result = await session.execute(select(func.coalesce(func.sum(col(LeaveRequest.quantity)), 0)).where(*filters))
    return quantize_amount(Decimal(str(result.scalar_one())))


async def available_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    as_of: date,
    *,
    exclude_request_id: uuid.UUID | None = None,
) -> Decimal:
    """Closing of the period covering ``as_of`` minus pending reservations.

    Raises NoBalancePeriod when no period covers the date.
    """
    balance = await find_covering_period(session, employee_id, policy_id, as_of)
    if balance is None:
        raise NoBalancePeriod(f"No balance period covers {as_of} for this employee and policy")
    pending = await pending_quantity(
        session, employee_id, policy_id, balance.period_start, exclude_request_id=exclude_request_id
    )
    return balance.closing - pending


async def can_cover(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    start_date: date,
    end_date: date,
    quantity: Decimal,
    *,
    exclude_request_id: uuid.UUID | None = None,
) -> bool:
    """Whether the balance available at ``start_date`` covers ``quantity``."""
    if end_date < start_date:
        raise InvalidPeriod(f"End date {end_date} is before start date {start_date}")
    available = await available_balance(
        session, employee_id, policy_id, start_date, exclude_request_id=exclude_request_id
    )
    return available >= quantity


async def get_employee_balances(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    as_of: date | None = None,
) -> BalanceListResponse:
    """Current-period balance for every company policy.

    Periods that do not exist yet are opened on read.
    """
    on_date = as_of or date.today()
    result = await session.execute(
        select(LeavePolicy).where(col(LeavePolicy.company_id) == company_id).order_by(col(LeavePolicy.code))
    )
    policies = list(result.scalars().all())

    items: list[BalanceResponse] = []
    for policy in policies:
        balance = await ensure_period(session, policy=policy, employee_id=employee_id, on_date=on_date)
        pending = await pending_quantity(session, employee_id, policy.id, balance.period_start)
        items.append(
            BalanceResponse(
                policy_id=policy.id,
                policy_code=policy.code,
                policy_name=policy.name,
                unit=LeaveUnit(policy.unit),
                period=build_period_response(balance),
                pending=pending,
                available=balance.closing - pending,
            )
        )

    await session.commit()
    return BalanceListResponse(items=items, total=len(items))


async def get_balance_history(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> LedgerHistoryResponse:
    """Ledger periods for one employee and policy, newest first."""
    await get_policy_model(session, company_id, policy_id)

    base_filter = [
        col(LeaveBalance.employee_id) == employee_id,
        col(LeaveBalance.policy_id) == policy_id,
    ]
    count_result = await session.execute(select(func.count()).select_from(LeaveBalance).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveBalance)
        .where(*base_filter)
        .order_by(col(LeaveBalance.period_start).desc())
        .offset(offset)
        .limit(limit)
    )
    return LedgerHistoryResponse(
        items=[build_period_response(b) for b in result.scalars().all()],
        total=total,
    )


async def get_coverage(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    start_date: date,
    end_date: date,
    quantity: Decimal | None = None,
) -> CoverageResponse:
    """Answer whether a prospective request could be covered."""
    policy = await get_policy_model(session, company_id, policy_id)
    if quantity is None:
        quantity = await calculate_request_quantity(session, company_id, employee_id, policy, start_date, end_date)

    await ensure_period(session, policy=policy, employee_id=employee_id, on_date=start_date)
    available = await available_balance(session, employee_id, policy_id, start_date)
    covered = await can_cover(session, employee_id, policy_id, start_date, end_date, quantity)
    await session.commit()

    return CoverageResponse(
        policy_id=policy_id,
        as_of=start_date,
        quantity=quantity,
        available=available,
        can_cover=covered,
    )

# ruff: noqa: TC003
"""Balance ledger writer.

Every mutation of ``leave_balance`` goes through this module so that
``closing == opening + accrued + adjusted - taken`` holds for each row and
every change bumps ``version``. Functions here flush but never commit; the
calling service owns the transaction.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.exceptions import (
    AppError,
    InsufficientBalance,
    InvalidPeriod,
    InvalidRequest,
    NoBalancePeriod,
    StorageError,
)
from leave_ledger.models.audit import SYSTEM_ACTOR
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.base import now_utc
from leave_ledger.models.enums import AuditAction, AuditEntityType, LedgerPeriod
from leave_ledger.schemas.balance import LedgerPeriodResponse
from leave_ledger.services.accrual import compute_period_accrual, period_bounds
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.models.policy import LeavePolicy
    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.balance import CreateAdjustmentRequest

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")

# Amount fields a superseding write may replace.
_AMOUNT_FIELDS = ("opening", "accrued", "taken", "adjusted", "forfeited")


class PeriodOutcome(StrEnum):
    OPENED = "OPENED"
    SUPERSEDED = "SUPERSEDED"
    UNCHANGED = "UNCHANGED"


@dataclass
class OpenPeriodResult:
    balance: LeaveBalance
    outcome: PeriodOutcome


def compute_closing(balance: LeaveBalance) -> Decimal:
    return balance.opening + balance.accrued + balance.adjusted - balance.taken


def build_period_response(balance: LeaveBalance) -> LedgerPeriodResponse:
    return LedgerPeriodResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        policy_id=balance.policy_id,
        period_start=balance.period_start,
        period_end=balance.period_end,
        opening=balance.opening,
        accrued=balance.accrued,
        taken=balance.taken,
        adjusted=balance.adjusted,
        forfeited=balance.forfeited,
        closing=balance.closing,
        version=balance.version,
        updated_at=balance.updated_at,
    )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def find_covering_period(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    on_date: date,
    *,
    for_update: bool = False,
) -> LeaveBalance | None:
    """Return the ledger period with ``period_start <= on_date < period_end``."""
    query = (
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_id) == policy_id,
            col(LeaveBalance.period_start) <= on_date,
            col(LeaveBalance.period_end) > on_date,
        )
        .order_by(col(LeaveBalance.period_start).desc())
        .limit(1)
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _get_period(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    period_start: date,
) -> LeaveBalance | None:
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_id) == policy_id,
            col(LeaveBalance.period_start) == period_start,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def _prior_closing(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    period_start: date,
) -> Decimal:
    """Closing of the latest period ending on or before ``period_start``; zero if none."""
    result = await session.execute(
        select(col(LeaveBalance.closing))
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_id) == policy_id,
            col(LeaveBalance.period_end) <= period_start,
        )
        .order_by(col(LeaveBalance.period_end).desc())
        .limit(1)
    )
    closing = result.scalar_one_or_none()
    return Decimal(closing) if closing is not None else _ZERO


async def _overlaps_other_period(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    period_start: date,
    period_end: date,
) -> bool:
    result = await session.execute(
        select(func.count())
        .select_from(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_id) == policy_id,
            col(LeaveBalance.period_start) != period_start,
            col(LeaveBalance.period_start) < period_end,
            col(LeaveBalance.period_end) > period_start,
        )
    )
    return result.scalar_one() > 0


async def _free_bounds(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    on_date: date,
) -> tuple[date, date]:
    """Configured ledger period around ``on_date``, clipped to neighbouring periods."""
    period_start, period_end = period_bounds(on_date, LedgerPeriod(get_settings().ledger_period))

    previous_end = await session.execute(
        select(func.max(col(LeaveBalance.period_end))).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_id) == policy_id,
            col(LeaveBalance.period_end) <= on_date,
        )
    )
    next_start = await session.execute(
        select(func.min(col(LeaveBalance.period_start))).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.policy_id) == policy_id,
            col(LeaveBalance.period_start) > on_date,
        )
    )
    clip_start = previous_end.scalar_one_or_none()
    clip_end = next_start.scalar_one_or_none()
    if clip_start is not None and clip_start > period_start:
        period_start = clip_start
    if clip_end is not None and clip_end < period_end:
        period_end = clip_end
    return period_start, period_end


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def upsert_balance(session: AsyncSession, entry: LeaveBalance) -> LeaveBalance:
    """Insert a ledger period, or supersede the one with the same start.

    ``closing`` is always recomputed from the other amounts.
    """
    if entry.period_end <= entry.period_start:
        raise InvalidPeriod(f"Period end {entry.period_end} must be after period start {entry.period_start}")

    existing = await _get_period(session, entry.employee_id, entry.policy_id, entry.period_start)
    if existing is None:
        entry.closing = compute_closing(entry)
        session.add(entry)
        target = entry
    else:
        existing.period_end = entry.period_end
        for field in _AMOUNT_FIELDS:
            setattr(existing, field, getattr(entry, field))
        existing.closing = compute_closing(existing)
        existing.version += 1
        existing.updated_at = now_utc()
        target = existing

    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning(
            "Concurrent write on balance employee=%s policy=%s period_start=%s",
            entry.employee_id,
            entry.policy_id,
            entry.period_start,
        )
        raise StorageError("Balance period was written concurrently, please retry") from exc
    return target


async def open_period(
    session: AsyncSession,
    *,
    policy: LeavePolicy,
    employee_id: uuid.UUID,
    period_start: date,
    period_end: date,
    actor_id: uuid.UUID = SYSTEM_ACTOR,
) -> OpenPeriodResult:
    """Open (or re-open) ``[period_start, period_end)`` from the prior period's closing.

    Re-opening with unchanged inputs is a no-op. When the inputs changed, the
    recomputed opening, accrual and forfeiture supersede the stored ones while
    ``taken`` and ``adjusted`` are preserved.
    """
    if period_end <= period_start:
        raise InvalidPeriod(f"Period end {period_end} must be after period start {period_start}")
    if await _overlaps_other_period(session, employee_id, policy.id, period_start, period_end):
        raise InvalidPeriod(f"Period {period_start}..{period_end} overlaps an existing ledger period")

    prior_closing = await _prior_closing(session, employee_id, policy.id, period_start)
    computed = compute_period_accrual(policy, period_start, period_end, prior_closing)

    existing = await _get_period(session, employee_id, policy.id, period_start)
    if existing is not None:
        stored = (existing.period_end, existing.opening, existing.accrued, existing.forfeited)
        if stored == (computed.period_end, computed.opening, computed.accrued, computed.forfeited):
            return OpenPeriodResult(balance=existing, outcome=PeriodOutcome.UNCHANGED)

        before = model_to_audit_dict(existing)
        balance = await upsert_balance(
            session,
            LeaveBalance(
                company_id=policy.company_id,
                employee_id=employee_id,
                policy_id=policy.id,
                period_start=period_start,
                period_end=computed.period_end,
                opening=computed.opening,
                accrued=computed.accrued,
                forfeited=computed.forfeited,
                taken=existing.taken,
                adjusted=existing.adjusted,
            ),
        )
        if balance.closing < 0:
            logger.warning(
                "Superseded period leaves negative closing %s for employee=%s policy=%s",
                balance.closing,
                employee_id,
                policy.id,
            )
        await write_audit_log(
            session,
            company_id=policy.company_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.UPDATE,
            before_json=before,
            after_json=model_to_audit_dict(balance),
        )
        outcome = PeriodOutcome.SUPERSEDED
    else:
        balance = await upsert_balance(
            session,
            LeaveBalance(
                company_id=policy.company_id,
                employee_id=employee_id,
                policy_id=policy.id,
                period_start=period_start,
                period_end=computed.period_end,
                opening=computed.opening,
                accrued=computed.accrued,
                forfeited=computed.forfeited,
            ),
        )
        await write_audit_log(
            session,
            company_id=policy.company_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(balance),
        )
        outcome = PeriodOutcome.OPENED

    if computed.forfeited > 0:
        await write_audit_log(
            session,
            company_id=policy.company_id,
            actor_id=actor_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.FORFEIT,
            after_json={
                "prior_closing": str(prior_closing),
                "carry_over_max": str(policy.carry_over_max),
                "forfeited": str(computed.forfeited),
            },
        )

    logger.info(
        "Period %s..%s %s for employee=%s policy=%s closing=%s",
        period_start,
        computed.period_end,
        outcome.value.lower(),
        employee_id,
        policy.id,
        balance.closing,
    )
    return OpenPeriodResult(balance=balance, outcome=outcome)


async def ensure_period(
    session: AsyncSession,
    *,
    policy: LeavePolicy,
    employee_id: uuid.UUID,
    on_date: date,
) -> LeaveBalance:
    """Return the locked period covering ``on_date``, opening it if needed."""
    covering = await find_covering_period(session, employee_id, policy.id, on_date, for_update=True)
    if covering is not None:
        return covering

    period_start, period_end = await _free_bounds(session, employee_id, policy.id, on_date)
    opened = await open_period(
        session,
        policy=policy,
        employee_id=employee_id,
        period_start=period_start,
        period_end=period_end,
    )
    return opened.balance


async def adjust_taken(
    session: AsyncSession,
    employee_id: uuid.UUID,
    policy_id: uuid.UUID,
    on_date: date,
    delta: Decimal,
) -> LeaveBalance:
    """Add ``delta`` to ``taken`` on the period covering ``on_date``.

    A positive delta is applied only while the closing stays non-negative;
    the check and the write are one conditional UPDATE. A negative delta
    reverses earlier consumption and may not exceed what was taken.
    """
    balance = await find_covering_period(session, employee_id, policy_id, on_date, for_update=True)
    if balance is None:
        raise NoBalancePeriod(f"No balance period covers {on_date} for this employee and policy")

    new_taken = col(LeaveBalance.taken) + delta
    new_closing = (
        col(LeaveBalance.opening) + col(LeaveBalance.accrued) + col(LeaveBalance.adjusted) - col(LeaveBalance.taken)
    ) - delta
    stmt = update(LeaveBalance).where(col(LeaveBalance.id) == balance.id)
    if delta > 0:
        stmt = stmt.where(func.round(new_closing, 2) >= 0)
    else:
        stmt = stmt.where(func.round(new_taken, 2) >= 0)
    stmt = stmt.values(
        taken=new_taken,
        closing=new_closing,
        version=col(LeaveBalance.version) + 1,
        updated_at=now_utc(),
    ).execution_options(synchronize_session=False)

    result = await session.execute(stmt)
    if result.rowcount == 0:
        if delta > 0:
            raise InsufficientBalance(
                f"Insufficient balance: {balance.closing} available, {delta} requested"
            )
        raise InvalidRequest(f"Cannot reverse {-delta}: only {balance.taken} was taken in this period")

    await session.refresh(balance)
    return balance


async def apply_adjustment(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateAdjustmentRequest,
) -> LedgerPeriodResponse:
    """Apply a signed manual adjustment to the period covering ``effective_on``."""
    from leave_ledger.services.policy import get_policy_model

    if payload.amount == 0:
        raise InvalidRequest("Adjustment amount must not be zero")

    try:
        policy = await get_policy_model(session, auth.company_id, payload.policy_id)
        balance = await ensure_period(
            session, policy=policy, employee_id=payload.employee_id, on_date=payload.effective_on
        )
        before = model_to_audit_dict(balance)

        new_adjusted = col(LeaveBalance.adjusted) + payload.amount
        new_closing = (
            col(LeaveBalance.opening)
            + col(LeaveBalance.accrued)
            + col(LeaveBalance.adjusted)
            - col(LeaveBalance.taken)
        ) + payload.amount
        stmt = update(LeaveBalance).where(col(LeaveBalance.id) == balance.id)
        if payload.amount < 0:
            stmt = stmt.where(func.round(new_closing, 2) >= 0)
        stmt = stmt.values(
            adjusted=new_adjusted,
            closing=new_closing,
            version=col(LeaveBalance.version) + 1,
            updated_at=now_utc(),
        ).execution_options(synchronize_session=False)

        result = await session.execute(stmt)
        if result.rowcount == 0:
            raise InsufficientBalance(
                f"Insufficient balance: deducting {-payload.amount} would leave {balance.closing + payload.amount}"
            )
        await session.refresh(balance)

        after = model_to_audit_dict(balance)
        after["reason"] = payload.reason
        await write_audit_log(
            session,
            company_id=auth.company_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.ADJUST,
            before_json=before,
            after_json=after,
        )
        await session.commit()
    except AppError:
        await session.rollback()
        raise

    logger.info(
        "Adjusted balance employee=%s policy=%s by %s (actor=%s)",
        payload.employee_id,
        payload.policy_id,
        payload.amount,
        auth.user_id,
    )
    return build_period_response(balance)

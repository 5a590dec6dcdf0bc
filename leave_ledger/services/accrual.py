"""Accrual engine: per-period leave accrual with carry-over caps.

The computation is pure and deterministic so that recomputing a period with
the same inputs always produces the same ledger figures. Persistence lives in
``leave_ledger.services.ledger``.
"""

from __future__ import annotations

import logging
import re
import uuid
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from pydantic import ValidationError
from sqlalchemy import select
from sqlmodel import col

from leave_ledger.exceptions import InvalidPeriod, InvalidPolicyRule
from leave_ledger.models.enums import AccrualCadence, LeaveUnit, LedgerPeriod
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.schemas.policy import AccrualRule
from leave_ledger.services.employee import get_employee_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Published cadence lengths in calendar days. Changing these changes every
# recomputed balance, so they are fixed constants rather than settings.
CADENCE_LENGTH_DAYS: dict[AccrualCadence, Decimal] = {
    AccrualCadence.PER_YEAR: Decimal("365.25"),
    AccrualCadence.PER_MONTH: Decimal("30.4375"),
    AccrualCadence.PER_WEEK: Decimal("7"),
}

# Ledger amounts are stored with two decimal places.
POLICY_PRECISION = Decimal("0.01")

_ZERO = Decimal("0")


def quantize_amount(value: Decimal) -> Decimal:
    """Round an amount to ledger precision (half-up)."""
    return value.quantize(POLICY_PRECISION, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodAccrual:
    """Figures for a freshly opened ledger period."""

    period_start: date
    period_end: date
    opening: Decimal
    accrued: Decimal
    forfeited: Decimal
    adjusted: Decimal = _ZERO
    taken: Decimal = _ZERO

    @property
    def closing(self) -> Decimal:
        return self.opening + self.accrued + self.adjusted - self.taken


@dataclass
class AccrualRunResult:
    """Summary of a batch accrual run over one period."""

    period_start: date
    period_end: date
    processed: int = 0
    opened: int = 0
    superseded: int = 0
    unchanged: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Pure computation (no DB)
# ---------------------------------------------------------------------------


def compute_period_accrual(
    policy: LeavePolicy,
    period_start: date,
    period_end: date,
    prior_closing: Decimal,
) -> PeriodAccrual:
    """Compute opening, accrual and forfeiture for ``[period_start, period_end)``.

    accrued = round(amount * days / cadence_length, 2)
    opening = min(prior_closing, carry_over_max) when a cap is set

    A negative prior closing is carried over unchanged; the cap only limits
    positive balances.
    """
    amount = Decimal(policy.accrual_amount)
    if amount <= 0:
        raise InvalidPolicyRule(f"Accrual amount must be positive, got {amount}")
    if period_end <= period_start:
        raise InvalidPeriod(f"Period end {period_end} must be after period start {period_start}")

    cadence = AccrualCadence(policy.accrual_cadence)
    days = Decimal((period_end - period_start).days)
    accrued = quantize_amount(amount * days / CADENCE_LENGTH_DAYS[cadence])

    prior = quantize_amount(Decimal(prior_closing))
    cap = policy.carry_over_max
    if cap is not None and cap < 0:
        raise InvalidPolicyRule(f"carry_over_max must not be negative, got {cap}")

    opening = prior
    forfeited = _ZERO
    if cap is not None and prior > cap:
        opening = quantize_amount(Decimal(cap))
        forfeited = prior - opening

    return PeriodAccrual(
        period_start=period_start,
        period_end=period_end,
        opening=opening,
        accrued=accrued,
        forfeited=forfeited,
    )


def period_bounds(on_date: date, ledger_period: LedgerPeriod) -> tuple[date, date]:
    """Return the half-open ledger period ``[start, end)`` containing ``on_date``.

    MONTHLY:   [1st of month, 1st of next month)
    QUARTERLY: [1st of quarter, 1st of next quarter)
    YEARLY:    [Jan 1, Jan 1 next year)
    """
    if ledger_period == LedgerPeriod.MONTHLY:
        period_start = on_date.replace(day=1)
        _, days_in_month = monthrange(on_date.year, on_date.month)
        return period_start, period_start + timedelta(days=days_in_month)

    if ledger_period == LedgerPeriod.QUARTERLY:
        first_month = ((on_date.month - 1) // 3) * 3 + 1
        period_start = date(on_date.year, first_month, 1)
        if first_month == 10:
            return period_start, date(on_date.year + 1, 1, 1)
        return period_start, date(on_date.year, first_month + 3, 1)

    return date(on_date.year, 1, 1), date(on_date.year + 1, 1, 1)


# ---------------------------------------------------------------------------
# Free-text rule parsing
# ---------------------------------------------------------------------------

_RULE_PATTERN = re.compile(
    r"""^\s*
    (?P<amount>\d+(?:\.\d+)?)\s*
    (?P<unit>days?|hours?|hrs?)?\s*
    (?:
        (?:per|/|a|an|every|each)\s*(?P<per>year|yr|annum|month|mo|week|wk)
        |
        (?P<adverb>annually|yearly|monthly|weekly)
    )
    \s*$""",
    re.IGNORECASE | re.VERBOSE,
)

_CADENCE_WORDS: dict[str, AccrualCadence] = {
    "year": AccrualCadence.PER_YEAR,
    "yr": AccrualCadence.PER_YEAR,
    "annum": AccrualCadence.PER_YEAR,
    "annually": AccrualCadence.PER_YEAR,
    "yearly": AccrualCadence.PER_YEAR,
    "month": AccrualCadence.PER_MONTH,
    "mo": AccrualCadence.PER_MONTH,
    "monthly": AccrualCadence.PER_MONTH,
    "week": AccrualCadence.PER_WEEK,
    "wk": AccrualCadence.PER_WEEK,
    "weekly": AccrualCadence.PER_WEEK,
}


def parse_accrual_rule_text(text: str) -> tuple[AccrualRule, LeaveUnit | None]:
    """Parse rules such as ``"25 days per year"`` or ``"3.33 hours per month"``.

    Returns the structured rule and the unit named in the text, if any.
    """
    match = _RULE_PATTERN.match(text)
    if match is None:
        raise InvalidPolicyRule(f"Cannot parse accrual rule {text!r}; expected e.g. '25 days per year'")

    try:
        amount = Decimal(match.group("amount"))
    except InvalidOperation as exc:
        raise InvalidPolicyRule(f"Invalid accrual amount in {text!r}") from exc

    cadence_word = (match.group("per") or match.group("adverb")).lower()
    unit_word = (match.group("unit") or "").lower()
    unit: LeaveUnit | None = None
    if unit_word.startswith("d"):
        unit = LeaveUnit.DAYS
    elif unit_word.startswith("h"):
        unit = LeaveUnit.HOURS

    try:
        rule = AccrualRule(amount=amount, cadence=_CADENCE_WORDS[cadence_word])
    except ValidationError as exc:
        raise InvalidPolicyRule(
            f"Invalid accrual amount in {text!r}: at most 4 decimal places and below 100000"
        ) from exc
    return rule, unit


def resolve_accrual_rule(rule: AccrualRule | str, unit: LeaveUnit) -> AccrualRule:
    """Turn API input into a validated structured rule for a policy of ``unit``."""
    if isinstance(rule, str):
        rule, text_unit = parse_accrual_rule_text(rule)
        if text_unit is not None and text_unit != unit:
            raise InvalidPolicyRule(f"Accrual rule is expressed in {text_unit} but the policy unit is {unit}")
    if rule.amount <= 0:
        raise InvalidPolicyRule(f"Accrual amount must be positive, got {rule.amount}")
    return rule


# ---------------------------------------------------------------------------
# Batch orchestration
# ---------------------------------------------------------------------------


async def run_period_accruals(
    session: AsyncSession,
    period_start: date,
    period_end: date,
    *,
    company_id: uuid.UUID | None = None,
    policy_id: uuid.UUID | None = None,
) -> AccrualRunResult:
    """Open the given period for every (employee, policy) pair in scope.

    Employees come from the employee directory of each policy's company.
    Each pair is committed on its own; a failure is logged and counted and
    does not stop the run. Re-running with the same inputs is a no-op.
    """
    from leave_ledger.services.ledger import PeriodOutcome, open_period

    if period_end <= period_start:
        raise InvalidPeriod(f"Period end {period_end} must be after period start {period_start}")

    result = AccrualRunResult(period_start=period_start, period_end=period_end)

    filters = []
    if company_id is not None:
        filters.append(col(LeavePolicy.company_id) == company_id)
    if policy_id is not None:
        filters.append(col(LeavePolicy.id) == policy_id)

    policies_result = await session.execute(
        select(LeavePolicy).where(*filters).order_by(col(LeavePolicy.company_id), col(LeavePolicy.code))
    )
    policy_refs = [(p.id, p.company_id) for p in policies_result.scalars().all()]

    employee_service = get_employee_service()

    for pid, cid in policy_refs:
        employees = await employee_service.list_employees(cid)
        for employee in employees:
            result.processed += 1
            try:
                # Re-read after a possible rollback expired the instance.
                policy = await session.get(LeavePolicy, pid)
                if policy is None:
                    break
                opened = await open_period(
                    session,
                    policy=policy,
                    employee_id=employee.id,
                    period_start=period_start,
                    period_end=period_end,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                logger.exception(
                    "Error opening period %s..%s for employee=%s policy=%s",
                    period_start,
                    period_end,
                    employee.id,
                    pid,
                )
                result.errors += 1
                continue

            if opened.outcome == PeriodOutcome.OPENED:
                result.opened += 1
            elif opened.outcome == PeriodOutcome.SUPERSEDED:
                result.superseded += 1
            else:
                result.unchanged += 1

    logger.info(
        "Accrual run %s..%s: processed=%d opened=%d superseded=%d unchanged=%d errors=%d",
        period_start,
        period_end,
        result.processed,
        result.opened,
        result.superseded,
        result.unchanged,
        result.errors,
    )
    return result

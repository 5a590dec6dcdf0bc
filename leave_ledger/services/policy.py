# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.exceptions import AppError, DuplicatePolicyCode, NotFound
from leave_ledger.models.base import now_utc
from leave_ledger.models.enums import AccrualCadence, AuditAction, AuditEntityType, LeaveUnit
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.schemas.policy import AccrualRule, PolicyListResponse, PolicyResponse
from leave_ledger.services.accrual import resolve_accrual_rule
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.policy import CreatePolicyRequest, UpdatePolicyRequest

logger = logging.getLogger(__name__)


def _build_policy_response(policy: LeavePolicy) -> PolicyResponse:
    """Build a PolicyResponse from the DB model."""
    return PolicyResponse(
        id=policy.id,
        company_id=policy.company_id,
        code=policy.code,
        name=policy.name,
        unit=LeaveUnit(policy.unit),
        accrual_rule=AccrualRule(amount=policy.accrual_amount, cadence=AccrualCadence(policy.accrual_cadence)),
        carry_over_max=policy.carry_over_max,
        exclude_weekends=policy.exclude_weekends,
        exclude_holidays=policy.exclude_holidays,
        created_at=policy.created_at,
        updated_at=policy.updated_at,
    )


async def get_policy_model(
    session: AsyncSession,
    company_id: uuid.UUID,
    policy_id: uuid.UUID,
) -> LeavePolicy:
    """Fetch a company's policy or raise 404."""
    result = await session.execute(
        select(LeavePolicy).where(
            col(LeavePolicy.id) == policy_id,
            col(LeavePolicy.company_id) == company_id,
        )
    )
    policy = result.scalar_one_or_none()
    if policy is None:
        raise NotFound("Policy not found")
    return policy


async def create_policy(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreatePolicyRequest,
) -> PolicyResponse:
    """Create a leave policy. Free-text accrual rules are parsed here."""
    existing = await session.execute(
        select(LeavePolicy).where(
            col(LeavePolicy.company_id) == auth.company_id,
            col(LeavePolicy.code) == payload.code,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicatePolicyCode()

    rule = resolve_accrual_rule(payload.accrual_rule, payload.unit)

    policy = LeavePolicy(
        company_id=auth.company_id,
        code=payload.code,
        name=payload.name,
        unit=payload.unit,
        accrual_amount=rule.amount,
        accrual_cadence=rule.cadence,
        carry_over_max=payload.carry_over_max,
        exclude_weekends=payload.exclude_weekends,
        exclude_holidays=payload.exclude_holidays,
    )
    session.add(policy)

    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicatePolicyCode() from exc

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(policy),
    )

    await session.commit()
    await session.refresh(policy)
    logger.info("Created policy %s (%s) for company=%s", policy.code, policy.id, policy.company_id)
    return _build_policy_response(policy)


async def update_policy(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
) -> PolicyResponse:
    """Apply a partial update. Past ledger periods are not recomputed."""
    policy = await get_policy_model(session, auth.company_id, policy_id)
    before = model_to_audit_dict(policy)

    try:
        if payload.accrual_rule is not None:
            rule = resolve_accrual_rule(payload.accrual_rule, LeaveUnit(policy.unit))
            policy.accrual_amount = rule.amount
            policy.accrual_cadence = rule.cadence
        if payload.name is not None:
            policy.name = payload.name
        if payload.clear_carry_over_max:
            policy.carry_over_max = None
        elif payload.carry_over_max is not None:
            policy.carry_over_max = payload.carry_over_max
        if payload.exclude_weekends is not None:
            policy.exclude_weekends = payload.exclude_weekends
        if payload.exclude_holidays is not None:
            policy.exclude_holidays = payload.exclude_holidays
    except AppError:
        await session.rollback()
        raise

    policy.updated_at = now_utc()
    session.add(policy)
    await session.flush()

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(policy),
    )

    await session.commit()
    await session.refresh(policy)
    return _build_policy_response(policy)


async def get_policy(
    session: AsyncSession,
    company_id: uuid.UUID,
    policy_id: uuid.UUID,
) -> PolicyResponse:
    """Get a single policy."""
    policy = await get_policy_model(session, company_id, policy_id)
    return _build_policy_response(policy)


async def list_policies(
    session: AsyncSession,
    company_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> PolicyListResponse:
    """List policies for a company, ordered by code."""
    count_result = await session.execute(
        select(func.count()).select_from(LeavePolicy).where(col(LeavePolicy.company_id) == company_id)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeavePolicy)
        .where(col(LeavePolicy.company_id) == company_id)
        .order_by(col(LeavePolicy.code))
        .offset(offset)
        .limit(limit)
    )
    policies = list(result.scalars().all())

    return PolicyListResponse(
        items=[_build_policy_response(p) for p in policies],
        total=total,
    )

# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.exceptions import (
    AppError,
    Forbidden,
    InsufficientBalance,
    InvalidRequest,
    InvalidTransition,
    NotFound,
)
from leave_ledger.models.base import now_utc
from leave_ledger.models.enums import AuditAction, AuditEntityType, LeaveUnit, RequestStatus
from leave_ledger.models.request import LeaveRequest
from leave_ledger.schemas.request import RequestListResponse, RequestResponse
from leave_ledger.services.audit import model_to_audit_dict, write_audit_log
from leave_ledger.services.balance import available_balance
from leave_ledger.services.duration import calculate_request_quantity
from leave_ledger.services.ledger import adjust_taken, ensure_period
from leave_ledger.services.policy import get_policy_model

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.models.policy import LeavePolicy
    from leave_ledger.schemas.auth import AuthContext
    from leave_ledger.schemas.request import CreateRequestPayload, DecisionPayload, RejectPayload

logger = logging.getLogger(__name__)

# Statuses each action may start from. Anything else is an invalid transition.
_ALLOWED_FROM: dict[str, frozenset[RequestStatus]] = {
    "submit": frozenset({RequestStatus.DRAFT}),
    "approve": frozenset({RequestStatus.SUBMITTED}),
    "reject": frozenset({RequestStatus.SUBMITTED}),
    "cancel": frozenset({RequestStatus.SUBMITTED, RequestStatus.APPROVED}),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        company_id=request.company_id,
        employee_id=request.employee_id,
        policy_id=request.policy_id,
        start_date=request.start_date,
        end_date=request.end_date,
        unit=LeaveUnit(request.unit),
        quantity=request.quantity,
        reason=request.reason,
        status=RequestStatus(request.status),
        submitted_at=request.submitted_at,
        approver_id=request.approver_id,
        approved_at=request.approved_at,
        decided_at=request.decided_at,
        decision_note=request.decision_note,
        created_at=request.created_at,
    )


async def _get_request_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    request_id: uuid.UUID,
) -> LeaveRequest:
    """Fetch a request by ID scoped to company. Raises 404 if not found."""
    result = await session.execute(
        select(LeaveRequest).where(
            col(LeaveRequest.id) == request_id,
            col(LeaveRequest.company_id) == company_id,
        )
    )
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFound("Request not found")
    return request


def _check_transition(request: LeaveRequest, action: str) -> None:
    if RequestStatus(request.status) not in _ALLOWED_FROM[action]:
        raise InvalidTransition(f"Cannot {action} a request in status {request.status}")


def _check_owner_or_admin(auth: AuthContext, request: LeaveRequest, action: str) -> None:
    if not auth.may_act_for(request.employee_id):
        raise Forbidden(f"Only the requesting employee or an admin can {action} this request")


async def _check_available(
    session: AsyncSession,
    request: LeaveRequest,
    policy: LeavePolicy,
) -> None:
    """Lock the covering period and check it can absorb this request."""
    await ensure_period(session, policy=policy, employee_id=request.employee_id, on_date=request.start_date)
    available = await available_balance(
        session,
        request.employee_id,
        request.policy_id,
        request.start_date,
        exclude_request_id=request.id,
    )
    if available < request.quantity:
        raise InsufficientBalance(
            f"Insufficient balance: {available} {policy.unit.lower()} available, {request.quantity} requested"
        )


async def _submit(
    session: AsyncSession,
    auth: AuthContext,
    request: LeaveRequest,
    policy: LeavePolicy,
) -> None:
    _check_transition(request, "submit")
    await _check_available(session, request, policy)

    before = model_to_audit_dict(request)
    request.status = RequestStatus.SUBMITTED
    request.submitted_at = now_utc()
    session.add(request)
    await session.flush()

    await write_audit_log(
        session,
        company_id=request.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request.id,
        action=AuditAction.SUBMIT,
        before_json=before,
        after_json=model_to_audit_dict(request),
    )


async def _finish(session: AsyncSession, request: LeaveRequest) -> RequestResponse:
    await session.commit()
    await session.refresh(request)
    return _build_request_response(request)


# ---------------------------------------------------------------------------
# Workflow transitions
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Create a DRAFT request, optionally submitting it in the same transaction."""
    if not auth.may_act_for(payload.employee_id):
        raise Forbidden("Employees can only request leave for themselves")

    try:
        policy = await get_policy_model(session, auth.company_id, payload.policy_id)
        unit = LeaveUnit(policy.unit)
        if payload.unit is not None and payload.unit != unit:
            raise InvalidRequest(f"Request unit {payload.unit} does not match policy unit {unit}")

        quantity = payload.quantity
        if quantity is None:
            quantity = await calculate_request_quantity(
                session, auth.company_id, payload.employee_id, policy, payload.start_date, payload.end_date
            )

        request = LeaveRequest(
            company_id=auth.company_id,
            employee_id=payload.employee_id,
            policy_id=policy.id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            unit=unit,
            quantity=quantity,
            reason=payload.reason,
            status=RequestStatus.DRAFT,
        )
        session.add(request)
        await session.flush()

        await write_audit_log(
            session,
            company_id=auth.company_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=request.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(request),
        )

        if payload.submit:
            await _submit(session, auth, request, policy)
    except AppError:
        await session.rollback()
        raise

    logger.info("Created request %s for employee=%s quantity=%s %s", request.id, request.employee_id, quantity, unit)
    return await _finish(session, request)


async def submit_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """DRAFT -> SUBMITTED, guarded by available balance at start_date."""
    request = await _get_request_or_404(session, auth.company_id, request_id)
    _check_owner_or_admin(auth, request, "submit")

    try:
        policy = await get_policy_model(session, auth.company_id, request.policy_id)
        await _submit(session, auth, request, policy)
    except AppError:
        await session.rollback()
        raise

    return await _finish(session, request)


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None = None,
) -> RequestResponse:
    """SUBMITTED -> APPROVED.

    Availability is re-checked under the row lock and the quantity is
    consumed through ``adjust_taken``; status and balance commit together.
    On failure the request stays SUBMITTED.
    """
    request = await _get_request_or_404(session, auth.company_id, request_id)

    try:
        _check_transition(request, "approve")
        policy = await get_policy_model(session, auth.company_id, request.policy_id)
        await _check_available(session, request, policy)
        await adjust_taken(session, request.employee_id, request.policy_id, request.start_date, request.quantity)

        before = model_to_audit_dict(request)
        now = now_utc()
        request.status = RequestStatus.APPROVED
        request.approver_id = auth.user_id
        request.approved_at = now
        request.decided_at = now
        request.decision_note = payload.note if payload else None
        session.add(request)
        await session.flush()

        await write_audit_log(
            session,
            company_id=auth.company_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=request.id,
            action=AuditAction.APPROVE,
            before_json=before,
            after_json=model_to_audit_dict(request),
        )
    except AppError:
        await session.rollback()
        raise

    logger.info("Approved request %s (approver=%s)", request_id, auth.user_id)
    return await _finish(session, request)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: RejectPayload,
) -> RequestResponse:
    """SUBMITTED -> REJECTED. No ledger effect."""
    request = await _get_request_or_404(session, auth.company_id, request_id)
    _check_transition(request, "reject")

    before = model_to_audit_dict(request)
    request.status = RequestStatus.REJECTED
    request.approver_id = auth.user_id
    request.decided_at = now_utc()
    request.decision_note = payload.reason
    session.add(request)
    await session.flush()

    await write_audit_log(
        session,
        company_id=auth.company_id,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.REQUEST,
        entity_id=request.id,
        action=AuditAction.REJECT,
        before_json=before,
        after_json=model_to_audit_dict(request),
    )

    return await _finish(session, request)


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """SUBMITTED or APPROVED -> CANCELLED; an approved request gives its quantity back."""
    request = await _get_request_or_404(session, auth.company_id, request_id)
    _check_owner_or_admin(auth, request, "cancel")
    _check_transition(request, "cancel")

    try:
        if request.status == RequestStatus.APPROVED:
            await adjust_taken(
                session, request.employee_id, request.policy_id, request.start_date, -request.quantity
            )

        before = model_to_audit_dict(request)
        request.status = RequestStatus.CANCELLED
        request.decided_at = now_utc()
        session.add(request)
        await session.flush()

        await write_audit_log(
            session,
            company_id=auth.company_id,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=request.id,
            action=AuditAction.CANCEL,
            before_json=before,
            after_json=model_to_audit_dict(request),
        )
    except AppError:
        await session.rollback()
        raise

    logger.info("Cancelled request %s (actor=%s)", request_id, auth.user_id)
    return await _finish(session, request)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_request(
    session: AsyncSession,
    company_id: uuid.UUID,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Get a single request."""
    request = await _get_request_or_404(session, company_id, request_id)
    return _build_request_response(request)


async def list_requests(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    status: RequestStatus | None = None,
    policy_id: uuid.UUID | None = None,
    employee_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, newest first."""
    base_filter = [col(LeaveRequest.company_id) == company_id]
    if status is not None:
        base_filter.append(col(LeaveRequest.status) == status)
    if policy_id is not None:
        base_filter.append(col(LeaveRequest.policy_id) == policy_id)
    if employee_id is not None:
        base_filter.append(col(LeaveRequest.employee_id) == employee_id)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*base_filter)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return RequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=total,
    )

from __future__ import annotations

import enum


class LeaveUnit(enum.StrEnum):
    """Unit in which a policy's balances and requests are expressed."""

    DAYS = "DAYS"
    HOURS = "HOURS"


class AccrualCadence(enum.StrEnum):
    """Time unit over which an accrual rule's amount is earned."""

    PER_YEAR = "PER_YEAR"
    PER_MONTH = "PER_MONTH"
    PER_WEEK = "PER_WEEK"


class LedgerPeriod(enum.StrEnum):
    """Length of one balance ledger period."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class RequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    POLICY = "POLICY"
    BALANCE = "BALANCE"
    REQUEST = "REQUEST"
    HOLIDAY = "HOLIDAY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    ADJUST = "ADJUST"
    FORFEIT = "FORFEIT"


class Role(enum.StrEnum):
    """Caller role forwarded in the X-Role header."""

    ADMIN = "admin"
    EMPLOYEE = "employee"

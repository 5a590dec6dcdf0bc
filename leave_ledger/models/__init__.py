from sqlmodel import SQLModel

from leave_ledger.models.audit import SYSTEM_ACTOR, AuditLog
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_ledger.models.enums import (
    AccrualCadence,
    AuditAction,
    AuditEntityType,
    LeaveUnit,
    LedgerPeriod,
    RequestStatus,
    Role,
)
from leave_ledger.models.holiday import CompanyHoliday
from leave_ledger.models.policy import LeavePolicy
from leave_ledger.models.request import LeaveRequest

__all__ = [
    "SYSTEM_ACTOR",
    "AccrualCadence",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "CompanyHoliday",
    "LeaveBalance",
    "LeavePolicy",
    "LeaveRequest",
    "LeaveUnit",
    "LedgerPeriod",
    "RequestStatus",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UpdatedAtMixin",
    "UUIDBase",
]

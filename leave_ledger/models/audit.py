# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase

# Actor recorded for writes made by the accrual worker or lazy period opens.
SYSTEM_ACTOR = uuid.UUID(int=0)


class AuditLog(UUIDBase, TimestampMixin, table=True):
    """Append-only trail of policy, ledger, request and holiday mutations.

    Amounts inside the JSON snapshots are decimal strings.
    """

    __tablename__ = "audit_log"
    __table_args__ = (
        sa.Index("ix_audit_company_entity", "company_id", "entity_type", "entity_id"),
        sa.Index("ix_audit_log_created_at", "created_at"),
    )

    company_id: uuid.UUID = Field(index=True)
    actor_id: uuid.UUID
    entity_type: str = Field(max_length=20)
    entity_id: uuid.UUID
    action: str = Field(max_length=20)
    before_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    after_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)

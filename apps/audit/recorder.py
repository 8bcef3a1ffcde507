"""Audit entries and the sinks that store them.

``AuditRecorder.record`` is fire-and-forget: whatever the sink raises is
logged with full context and dropped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List
from uuid import UUID

import structlog
from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

from apps.users.principal import Principal
from shared.domain.base import utcnow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    actor_id: str
    actor_role: str
    hotel_id: UUID | None
    action: str
    entity_type: str
    entity_id: str
    changes: dict
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def for_principal(cls, principal: Principal, *, action: str, entity_type: str,
                      entity_id, hotel_id: UUID | None, changes: dict) -> "AuditEntry":
        return cls(
            actor_id=principal.user_id,
            actor_role=principal.role.value,
            hotel_id=hotel_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            changes=changes,
        )

    def to_dict(self) -> dict:
        """JSON-serializable form, as passed to the Celery task."""
        return {
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "hotel_id": str(self.hotel_id) if self.hotel_id else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "changes": self.changes,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        return cls(
            actor_id=data["actor_id"],
            actor_role=data["actor_role"],
            hotel_id=UUID(data["hotel_id"]) if data.get("hotel_id") else None,
            action=data["action"],
            entity_type=data["entity_type"],
            entity_id=data["entity_id"],
            changes=data.get("changes") or {},
            created_at=datetime.fromisoformat(data["created_at"]),
        )


class AuditSink(ABC):
    @abstractmethod
    def write(self, entry: AuditEntry) -> None:
        """Persist or forward one entry."""


class DatabaseAuditSink(AuditSink):
    """
    Writes ``AuditLog`` rows in the caller's database connection.

    The insert runs in its own savepoint, so a failed write never poisons
    a transaction the caller still has open.
    """

    def write(self, entry: AuditEntry) -> None:
        from .models import AuditLog

        with transaction.atomic():
            AuditLog.objects.create(
                actor_id=entry.actor_id,
                actor_role=entry.actor_role,
                hotel_id=entry.hotel_id,
                action=entry.action,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                changes=entry.changes,
                created_at=entry.created_at,
            )


class CeleryAuditSink(AuditSink):
    """Hands the entry to the ``audit.write_entry`` task."""

    def write(self, entry: AuditEntry) -> None:
        from .tasks import write_audit_entry

        write_audit_entry.delay(entry.to_dict())


class InMemoryAuditSink(AuditSink):
    def __init__(self):
        self.entries: List[AuditEntry] = []

    def write(self, entry: AuditEntry) -> None:
        self.entries.append(entry)


AUDIT_SINKS = {
    "database": DatabaseAuditSink,
    "celery": CeleryAuditSink,
    "memory": InMemoryAuditSink,
}


def get_audit_sink(name: str | None = None) -> AuditSink:
    """
    Sink named by ``name`` or the ``AUDIT_SINK`` setting.

    Besides the short names above, a dotted path to an ``AuditSink``
    subclass is accepted.
    """
    name = name or getattr(settings, "AUDIT_SINK", "database")
    sink_class = AUDIT_SINKS.get(name)
    if sink_class is None:
        sink_class = import_string(name)
    return sink_class()


class AuditRecorder:
    def __init__(self, sink: AuditSink | None = None):
        self._sink = sink

    @property
    def sink(self) -> AuditSink:
        if self._sink is None:
            self._sink = get_audit_sink()
        return self._sink

    def record(self, entry: AuditEntry) -> None:
        log = logger.bind(
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            actor_id=entry.actor_id,
            hotel_id=str(entry.hotel_id) if entry.hotel_id else None,
        )
        try:
            self.sink.write(entry)
        except Exception:
            log.exception("audit_write_failed")
            return
        log.debug("audit_recorded", changed=sorted(entry.changes))

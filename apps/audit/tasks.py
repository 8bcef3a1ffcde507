"""Celery tasks for the audit app."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .recorder import AuditEntry, DatabaseAuditSink

logger = logging.getLogger(__name__)


@shared_task(name="audit.write_entry", ignore_result=True)
def write_audit_entry(payload: dict) -> None:
    """Store an entry enqueued by ``CeleryAuditSink``."""

    entry = AuditEntry.from_dict(payload)
    DatabaseAuditSink().write(entry)
    logger.debug("Stored audit entry %s %s:%s", entry.action, entry.entity_type, entry.entity_id)

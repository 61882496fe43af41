"""
Audit subscriber

Writes one structured log line per published domain event. Subscribed to
every booking and payment event by the owning apps' ``ready()``.
"""

import structlog

from shared.domain.base import DomainEvent

audit_logger = structlog.get_logger("slotbook.audit")


def audit_event(event: DomainEvent) -> None:
    payload = event.to_dict()
    event_type = payload.pop('event_type')
    audit_logger.info(event_type, **payload)

"""
Unit of Work Pattern

Spans one atomic persistence unit and makes sure domain events are
published only after that unit committed.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """
    Abstract Unit of Work

    Subclasses expose their repositories as attributes and decide how a
    commit becomes durable. Events collected from aggregates are handed to
    the message bus once the commit succeeded and dropped on rollback.
    """

    def __init__(self, bus=None):
        self._events: List[DomainEvent] = []
        self._bus = bus

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the unit"""

    def rollback(self):
        """Discard collected events"""
        if self._events:
            logger.warning("Rolling back, discarding %s events", len(self._events))
        self._events.clear()

    def collect_events(self, aggregate):
        """
        Collect events from aggregate root

        Moves the aggregate's pending events into this unit.
        """
        new_events = aggregate.events
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()
            logger.debug(
                "Collected %s events from %s (ID: %s)",
                len(new_events), aggregate.__class__.__name__, aggregate.id,
            )

    def _take_events(self) -> List[DomainEvent]:
        events = self._events.copy()
        self._events.clear()
        return events

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish events to the message bus

        Called after the commit; the data is already durable, so a failing
        handler is logged and not re-raised.
        """
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info("Publishing %s domain events after commit", len(events))
        try:
            bus.publish_events(events)
        except Exception:
            logger.exception("Error publishing events")


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps ``transaction.atomic()``; events go out through
    ``transaction.on_commit()`` so they are never sent for rolled back data.

    Usage:
        with BookingUnitOfWork() as uow:
            booking = uow.bookings.get(scope, booking_id)
            transition(booking, 'confirmed', principal)
            uow.bookings.save(booking)
            uow.collect_events(booking)
        # Events are published after commit
    """

    def __init__(self, bus=None):
        super().__init__(bus)
        self._transaction = None

    def __enter__(self):
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)
                self._transaction = None

    def commit(self):
        events = self._take_events()
        logger.debug("Committing transaction with %s events", len(events))
        if events:
            transaction.on_commit(lambda: self._publish_events(events))

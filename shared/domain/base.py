"""
Base Domain Classes

Framework-free building blocks of the booking core. Aggregates are plain
dataclasses; the Django models in each app are mapped onto them by the
repositories.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(kw_only=True, eq=False)
class Entity(ABC):
    """Identity-bearing object; equality and hashing go by ``id`` only."""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other):
        return type(other) is type(self) and other.id == self.id

    def __hash__(self):
        return hash((type(self).__name__, self.id))


@dataclass(frozen=True)
class ValueObject(ABC):
    """Marker base for frozen, identity-less values."""


@dataclass(kw_only=True, eq=False)
class Aggregate(Entity):
    """
    Aggregate root

    Domain operations append events here; the unit of work drains them with
    ``clear_events`` once it has taken a copy through ``events``.
    """
    _pending: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def add_event(self, event: 'DomainEvent'):
        if event.aggregate_id is None:
            event.aggregate_id = self.id
        self._pending.append(event)

    def clear_events(self):
        del self._pending[:]

    @property
    def events(self) -> List['DomainEvent']:
        return list(self._pending)


@dataclass(kw_only=True)
class DomainEvent:
    """
    Something that happened to an aggregate

    Subclasses hold ids and primitive values only, so handlers never need
    the ORM row or the originating transaction.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)
    aggregate_id: UUID | None = None

    @property
    def name(self) -> str:
        return type(self).__name__

"""
Staleness markers for datasets, schemas and databases.

An entity is stale when its ``stale_at`` timestamp is set. Every transition is
reported as a StalenessChange so that the mutation pipeline can hand the
(old, new) pair to the counter cache and the reindex gate.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.entities import utcnow


@dataclass(frozen=True)
class StalenessChange:
    old: Optional[datetime]
    new: Optional[datetime]

    @property
    def changed(self) -> bool:
        return (self.old is None) != (self.new is None)

    @property
    def became_stale(self) -> bool:
        return self.old is None and self.new is not None

    @property
    def became_fresh(self) -> bool:
        return self.old is not None and self.new is None


def is_stale(entity) -> bool:
    return entity.stale_at is not None


def mark_stale(entity, at: Optional[datetime] = None) -> StalenessChange:
    """Set ``stale_at``. An entity that is already stale keeps its first timestamp."""
    old = entity.stale_at
    if old is None:
        entity.stale_at = at or utcnow()
    return StalenessChange(old, entity.stale_at)


def mark_fresh(entity) -> StalenessChange:
    old = entity.stale_at
    entity.stale_at = None
    return StalenessChange(old, None)

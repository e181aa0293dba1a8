"""
Counter cache for Schema.active_tables_and_views_count.

Tables and views count while they are fresh and not deleted. Chorus views work the
other way round: creating one takes one off the schema's count and destroying it
gives it back, whatever its own staleness.
"""
import logging
from typing import Callable, Protocol

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from core.errors import ParentNotFound
from core.mutations import Mutation, MutationKind
from core.staleness import is_stale
from models.entities import Dataset, Schema

logger = logging.getLogger(__name__)


class CounterStore(Protocol):
    def adjust(self, schema_id: int, delta: int) -> None: ...


class SqlCounterStore:
    """Applies deltas as a single UPDATE against the stored column."""

    def __init__(self, session: Session):
        self.session = session

    def adjust(self, schema_id: int, delta: int) -> None:
        column = Schema.active_tables_and_views_count
        if delta < 0:
            # Clamped at 0. A chorus view created on an empty count is not taken
            # back off when destroyed, so the count can drift above the live total.
            value = case((column + delta < 0, 0), else_=column + delta)
        else:
            value = column + delta
        result = self.session.execute(
            update(Schema)
            .where(Schema.id == schema_id)
            .values(active_tables_and_views_count=value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ParentNotFound("Schema", schema_id)

        # The loaded Schema, if any, must re-read the column on next access
        cached = self.session.identity_map.get(self.session.identity_key(Schema, schema_id))
        if cached is not None:
            self.session.expire(cached, ["active_tables_and_views_count"])
        logger.debug("schema %s active_tables_and_views_count %+d", schema_id, delta)


def counter_delta(mutation: Mutation) -> int:
    dataset = mutation.entity

    # Hard destroy of a row already soft-deleted: it stopped counting back then
    if mutation.kind is MutationKind.DESTROY and not mutation.soft and dataset.deleted_at is not None:
        return 0

    if dataset.is_chorus_view:
        if mutation.kind is MutationKind.CREATE:
            return -1
        if mutation.kind is MutationKind.DESTROY:
            return 1
        return 0

    if mutation.kind is MutationKind.CREATE:
        return 0 if is_stale(dataset) else 1
    if mutation.kind is MutationKind.DESTROY:
        return 0 if is_stale(dataset) else -1

    if dataset.deleted_at is not None:
        return 0
    change = mutation.staleness
    if change is None or not change.changed:
        return 0
    return -1 if change.became_stale else 1


class CounterCacheHandler:
    """after_write hook keeping the owning schema's counter in step with its datasets."""

    def __init__(self, store_factory: Callable[[Session], CounterStore] = SqlCounterStore):
        self.store_factory = store_factory

    def __call__(self, session: Session, mutation: Mutation) -> None:
        if not isinstance(mutation.entity, Dataset):
            return
        delta = counter_delta(mutation)
        if delta:
            self.store_factory(session).adjust(mutation.entity.schema_id, delta)

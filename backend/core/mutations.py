"""
Mutation pipeline — every create/update/destroy of a catalog entity goes through here.

Hooks run in a fixed order around one transaction:

    before_write   validation, staleness cascade      (entity changed in memory, nothing flushed)
    write + flush
    after_write    counter cache, reindex gate         (same transaction, may abort it)
    commit
    after_commit   search index push                   (failures are logged, never raised)

Any exception before the commit rolls the session back and propagates to the caller.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.orm import Session

from core import staleness
from core.staleness import StalenessChange
from models.entities import utcnow

logger = logging.getLogger(__name__)


class MutationKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"


@dataclass
class Mutation:
    kind: MutationKind
    entity: Any
    changes: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    soft: bool = False
    # Set by the reindex gate: "index", "remove" or None
    index_action: Optional[str] = None

    def changed(self, attr: str) -> bool:
        return attr in self.changes

    @property
    def staleness(self) -> Optional[StalenessChange]:
        if self.kind is MutationKind.CREATE:
            return StalenessChange(None, getattr(self.entity, "stale_at", None))
        if "stale_at" not in self.changes:
            return None
        old, new = self.changes["stale_at"]
        return StalenessChange(old, new)


Hook = Callable[[Session, Mutation], None]

FIXED_ATTRS = frozenset({"kind", "schema_id"})


class MutationPipeline:
    def __init__(
        self,
        session: Session,
        before_write: Iterable[Hook] = (),
        after_write: Iterable[Hook] = (),
        after_commit: Iterable[Hook] = (),
    ):
        self.session = session
        self.before_write = list(before_write)
        self.after_write = list(after_write)
        self.after_commit = list(after_commit)

    # ── Operations ────────────────────────────────────────────────────────────

    def create(self, entity):
        mutation = Mutation(MutationKind.CREATE, entity)
        self._run(mutation, lambda: self.session.add(entity))
        return entity

    def update(self, entity, **attrs):
        """
        Set attributes and run the hooks. Setting ``deleted_at`` on a live row is
        reported as a soft destroy, same as ``soft_delete``. ``kind`` and
        ``schema_id`` are fixed once created, and soft-deleted rows stay deleted.
        """
        fixed = sorted(FIXED_ATTRS & set(attrs))
        if fixed:
            raise ValueError(f"{', '.join(fixed)} cannot be changed after create")
        if "deleted_at" in attrs and attrs["deleted_at"] is None and entity.deleted_at is not None:
            raise ValueError("A soft-deleted row cannot be restored")

        def apply():
            for name, value in attrs.items():
                setattr(entity, name, value)
        return self._update(entity, list(attrs), apply)

    def mark_stale(self, entity, at: Optional[datetime] = None):
        return self._update(entity, ["stale_at"], lambda: staleness.mark_stale(entity, at))

    def mark_fresh(self, entity):
        return self._update(entity, ["stale_at"], lambda: staleness.mark_fresh(entity))

    def destroy(self, entity) -> None:
        mutation = Mutation(MutationKind.DESTROY, entity)
        self._run(mutation, lambda: self.session.delete(entity))

    def soft_delete(self, entity, at: Optional[datetime] = None) -> None:
        """Set ``deleted_at``; hooks see it as a destroy."""
        if entity.deleted_at is not None:
            return
        when = at or utcnow()
        entity.deleted_at = when
        mutation = Mutation(MutationKind.DESTROY, entity, {"deleted_at": (None, when)}, soft=True)
        self._run(mutation, lambda: None)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _update(self, entity, attrs: list[str], apply: Callable[[], Any]):
        before = {name: getattr(entity, name) for name in attrs}
        apply()
        changes = {
            name: (before[name], getattr(entity, name))
            for name in attrs
            if before[name] != getattr(entity, name)
        }
        if "deleted_at" in changes and changes["deleted_at"][0] is None:
            mutation = Mutation(MutationKind.DESTROY, entity, changes, soft=True)
        else:
            mutation = Mutation(MutationKind.UPDATE, entity, changes)
        self._run(mutation, lambda: None)
        return entity

    def _run(self, mutation: Mutation, write: Callable[[], Any]) -> None:
        try:
            for hook in self.before_write:
                hook(self.session, mutation)
            write()
            self.session.flush()
            for hook in self.after_write:
                hook(self.session, mutation)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.debug("%s %r committed", mutation.kind.value, mutation.entity)
        for hook in self.after_commit:
            hook(self.session, mutation)


def build_pipeline(session: Session, index) -> MutationPipeline:
    """Pipeline with the catalog's default hook order."""
    from core.cascade import cascade_staleness
    from core.counter_cache import CounterCacheHandler
    from core.reindex import SearchIndexHandler
    from core.validation import validate

    indexer = SearchIndexHandler(index)
    return MutationPipeline(
        session,
        before_write=[validate, cascade_staleness],
        after_write=[CounterCacheHandler(), indexer.gate],
        after_commit=[indexer.push],
    )

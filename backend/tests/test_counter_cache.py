import pytest

from core.counter_cache import CounterCacheHandler, SqlCounterStore, counter_delta
from core.errors import ParentNotFound
from core.mutations import Mutation, MutationKind, MutationPipeline
from models.entities import Dataset, DatasetKind, utcnow


class RecordingStore:
    def __init__(self):
        self.calls = []

    def adjust(self, schema_id, delta):
        self.calls.append((schema_id, delta))


def _dataset(kind=DatasetKind.TABLE, **attrs):
    return Dataset(schema_id=7, name="d", kind=kind, **attrs)


# ── counter_delta ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("kind", [DatasetKind.TABLE, DatasetKind.VIEW])
def test_table_and_view_staleness_transitions(kind):
    now = utcnow()
    went_stale = Mutation(MutationKind.UPDATE, _dataset(kind, stale_at=now), {"stale_at": (None, now)})
    went_fresh = Mutation(MutationKind.UPDATE, _dataset(kind), {"stale_at": (now, None)})
    untouched = Mutation(MutationKind.UPDATE, _dataset(kind), {"description": (None, "x")})
    assert counter_delta(went_stale) == -1
    assert counter_delta(went_fresh) == 1
    assert counter_delta(untouched) == 0


def test_table_existence_counts_only_when_fresh():
    assert counter_delta(Mutation(MutationKind.CREATE, _dataset())) == 1
    assert counter_delta(Mutation(MutationKind.CREATE, _dataset(stale_at=utcnow()))) == 0
    assert counter_delta(Mutation(MutationKind.DESTROY, _dataset())) == -1
    assert counter_delta(Mutation(MutationKind.DESTROY, _dataset(stale_at=utcnow()))) == 0


def test_chorus_view_existence_ignores_staleness():
    for stale_at in (None, utcnow()):
        view = _dataset(DatasetKind.CHORUS_VIEW, stale_at=stale_at)
        assert counter_delta(Mutation(MutationKind.CREATE, view)) == -1
        assert counter_delta(Mutation(MutationKind.DESTROY, view)) == 1
    now = utcnow()
    view = _dataset(DatasetKind.CHORUS_VIEW, stale_at=now)
    assert counter_delta(Mutation(MutationKind.UPDATE, view, {"stale_at": (None, now)})) == 0


def test_soft_deleted_dataset_no_longer_counts():
    now = utcnow()
    dataset = _dataset(stale_at=now, deleted_at=now)
    assert counter_delta(Mutation(MutationKind.UPDATE, dataset, {"stale_at": (None, now)})) == 0


def test_hard_destroy_of_soft_deleted_dataset_is_not_counted_twice():
    now = utcnow()
    assert counter_delta(Mutation(MutationKind.DESTROY, _dataset(deleted_at=now))) == 0
    view = _dataset(DatasetKind.CHORUS_VIEW, deleted_at=now)
    assert counter_delta(Mutation(MutationKind.DESTROY, view)) == 0
    assert counter_delta(Mutation(MutationKind.DESTROY, _dataset(deleted_at=now), soft=True)) == -1


def test_handler_uses_injected_store():
    store = RecordingStore()
    handler = CounterCacheHandler(store_factory=lambda session: store)
    handler(None, Mutation(MutationKind.CREATE, _dataset()))
    handler(None, Mutation(MutationKind.CREATE, _dataset(DatasetKind.CHORUS_VIEW)))
    handler(None, Mutation(MutationKind.UPDATE, _dataset(), {}))
    assert store.calls == [(7, 1), (7, -1)]


def test_handler_ignores_other_entities(catalog):
    store = RecordingStore()
    CounterCacheHandler(store_factory=lambda session: store)(None, Mutation(MutationKind.CREATE, catalog.schema))
    assert store.calls == []


# ── SqlCounterStore ───────────────────────────────────────────────────────────

def test_store_applies_delta_in_sql(session, catalog, active_count):
    store = SqlCounterStore(session)
    store.adjust(catalog.schema.id, 1)
    store.adjust(catalog.schema.id, 1)
    session.commit()
    assert active_count() == 2
    store.adjust(catalog.schema.id, -1)
    session.commit()
    assert active_count() == 1


def test_store_never_goes_negative(session, catalog, active_count):
    SqlCounterStore(session).adjust(catalog.schema.id, -1)
    session.commit()
    assert active_count() == 0


def test_store_raises_when_schema_missing(session, catalog):
    with pytest.raises(ParentNotFound):
        SqlCounterStore(session).adjust(catalog.schema.id + 100, 1)


def test_missing_schema_aborts_the_mutation(session, catalog):
    # no validation hook, so only the counter cache can catch the dangling schema id
    pipeline = MutationPipeline(session, after_write=[CounterCacheHandler()])
    with pytest.raises(ParentNotFound):
        pipeline.create(Dataset(schema_id=catalog.schema.id + 100, name="orphan", kind=DatasetKind.TABLE))
    assert session.query(Dataset).filter_by(name="orphan").count() == 0


# ── Through the pipeline ──────────────────────────────────────────────────────

@pytest.mark.parametrize("kind", [DatasetKind.TABLE, DatasetKind.VIEW])
def test_toggling_staleness(pipeline, add_dataset, active_count, kind):
    dataset = add_dataset("events", kind)
    assert active_count() == 1
    pipeline.mark_stale(dataset)
    assert active_count() == 0
    pipeline.mark_stale(dataset)
    assert active_count() == 0
    pipeline.mark_fresh(dataset)
    assert active_count() == 1
    pipeline.mark_fresh(dataset)
    assert active_count() == 1


def test_update_without_staleness_change_leaves_counter(pipeline, add_dataset, active_count):
    dataset = add_dataset("events")
    pipeline.update(dataset, description="all events")
    assert active_count() == 1


def test_chorus_view_create_and_destroy(pipeline, add_dataset, active_count):
    for name in ("a", "b", "c"):
        add_dataset(name)
    view = add_dataset("cv", DatasetKind.CHORUS_VIEW, query="select 1")
    assert active_count() == 2
    pipeline.mark_stale(view)
    assert active_count() == 2
    pipeline.destroy(view)
    assert active_count() == 3


def test_soft_delete_counts_as_destroy(pipeline, add_dataset, active_count):
    dataset = add_dataset("events")
    pipeline.soft_delete(dataset)
    assert active_count() == 0
    pipeline.soft_delete(dataset)
    assert active_count() == 0


def test_soft_delete_then_hard_destroy(pipeline, add_dataset, active_count):
    add_dataset("keep")
    table = add_dataset("events")
    assert active_count() == 2
    pipeline.soft_delete(table)
    assert active_count() == 1
    pipeline.destroy(table)
    assert active_count() == 1


def test_soft_delete_then_hard_destroy_chorus_view(pipeline, add_dataset, active_count):
    for name in ("a", "b", "c"):
        add_dataset(name)
    view = add_dataset("cv", DatasetKind.CHORUS_VIEW, query="select 1")
    assert active_count() == 2
    pipeline.soft_delete(view)
    assert active_count() == 3
    pipeline.destroy(view)
    assert active_count() == 3


def test_setting_deleted_at_through_update_counts_as_destroy(pipeline, add_dataset, active_count):
    table = add_dataset("events")
    assert active_count() == 1
    pipeline.update(table, deleted_at=utcnow())
    assert active_count() == 0
    pipeline.update(table, description="gone")
    assert active_count() == 0


def test_update_rejects_fixed_attributes_and_restore(pipeline, add_dataset, active_count):
    table = add_dataset("events")
    with pytest.raises(ValueError):
        pipeline.update(table, kind=DatasetKind.CHORUS_VIEW)
    with pytest.raises(ValueError):
        pipeline.update(table, schema_id=table.schema_id + 1)
    pipeline.soft_delete(table)
    with pytest.raises(ValueError):
        pipeline.update(table, deleted_at=None)
    assert table.deleted_at is not None
    assert active_count() == 0


def test_staleness_changes_after_soft_delete_leave_counter(pipeline, add_dataset, active_count):
    add_dataset("keep")
    table = add_dataset("events")
    pipeline.soft_delete(table)
    assert active_count() == 1
    pipeline.mark_stale(table)
    assert active_count() == 1
    pipeline.mark_fresh(table)
    assert active_count() == 1


def test_schema_lifecycle_scenario(pipeline, add_dataset, active_count):
    for i in range(5):
        add_dataset(f"table_{i}")
    assert active_count() == 5

    table = add_dataset("t")
    assert active_count() == 6
    pipeline.mark_stale(table)
    assert active_count() == 5
    pipeline.destroy(table)
    assert active_count() == 5
    add_dataset("cv", DatasetKind.CHORUS_VIEW, query="select * from table_0")
    assert active_count() == 4

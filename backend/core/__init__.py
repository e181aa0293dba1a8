from core.staleness import is_stale, mark_stale, mark_fresh  # noqa: F401
from core.mutations import MutationPipeline, build_pipeline  # noqa: F401
from core.counter_cache import CounterCacheHandler, SqlCounterStore  # noqa: F401
from core.reindex import should_reindex, bulk_reindex, reindex_dataset_permissions  # noqa: F401
from core.cascade import mark_database_stale, mark_database_fresh  # noqa: F401
from core.refresh import refresh_database, refresh_databases  # noqa: F401

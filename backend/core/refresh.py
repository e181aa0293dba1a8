"""
Catalog refresh — sync databases, schemas and datasets with what the data source reports.

Objects found in the source are created or marked fresh; objects that disappeared are
marked stale (when REFRESH_MARK_STALE is on). Datasets touched during a refresh hold back
their individual index pushes and are reindexed in one batch at the end.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select

from config import settings
from core.catalog_queries import datasets_in_schema
from core.db_connector import RelationInfo, list_database_names, reflect_relations
from core.errors import ParentNotFound
from core.mutations import MutationPipeline
from core.reindex import ReindexReport, bulk_reindex, should_reindex
from models.entities import Database, DataSource, Dataset, Schema

logger = logging.getLogger(__name__)


@dataclass
class RefreshSummary:
    database_id: int
    schemas_created: int = 0
    schemas_marked_stale: int = 0
    datasets_created: int = 0
    datasets_refreshed: int = 0
    datasets_marked_stale: int = 0
    reindex: ReindexReport = field(default_factory=ReindexReport)


def _sort_key(name: str) -> str:
    return re.sub(r"[^0-9a-z]", "", name.lower())


def refresh_databases(
    pipeline: MutationPipeline,
    source: DataSource,
    names: Optional[list[str]] = None,
    mark_stale: Optional[bool] = None,
) -> list[Database]:
    """Sync the database list of a data source. Returns the databases found, sorted by name."""
    session = pipeline.session
    if names is None:
        names = list_database_names(source)
    if mark_stale is None:
        mark_stale = settings.REFRESH_MARK_STALE

    existing = {
        db.name: db
        for db in session.scalars(select(Database).where(Database.data_source_id == source.id))
    }
    found: list[Database] = []
    for name in names:
        database = existing.get(name)
        if database is None:
            database = pipeline.create(Database(data_source_id=source.id, name=name))
        elif database.stale_at is not None:
            pipeline.mark_fresh(database)
        found.append(database)

    if mark_stale:
        for name, database in existing.items():
            if name not in names and database.stale_at is None:
                pipeline.mark_stale(database)

    logger.info("Refreshed %d databases of %s", len(found), source.name)
    return sorted(found, key=lambda db: _sort_key(db.name))


def refresh_database(
    pipeline: MutationPipeline,
    index,
    database_id: int,
    relations: Optional[dict[str, list[RelationInfo]]] = None,
    mark_stale: Optional[bool] = None,
) -> RefreshSummary:
    """Sync schemas and table/view datasets of one database, then reindex them in one batch."""
    session = pipeline.session
    database = session.get(Database, database_id)
    if database is None:
        raise ParentNotFound("Database", database_id)
    if relations is None:
        relations = reflect_relations(database.data_source, database.name)
    if mark_stale is None:
        mark_stale = settings.REFRESH_MARK_STALE

    summary = RefreshSummary(database_id=database.id)
    if database.stale_at is not None:
        pipeline.mark_fresh(database)

    existing = {
        schema.name: schema
        for schema in session.scalars(select(Schema).where(Schema.database_id == database.id))
    }
    touched: list[Dataset] = []
    for schema_name, schema_relations in relations.items():
        schema = existing.get(schema_name)
        if schema is None:
            schema = pipeline.create(Schema(database_id=database.id, name=schema_name))
            summary.schemas_created += 1
        elif schema.stale_at is not None:
            pipeline.mark_fresh(schema)
        touched += _refresh_datasets(pipeline, schema, schema_relations, mark_stale, summary)

    if mark_stale:
        for name, schema in existing.items():
            if name not in relations and schema.stale_at is None:
                pipeline.mark_stale(schema)
                summary.schemas_marked_stale += 1

    for dataset in touched:
        dataset.skip_search_index = False
    summary.reindex = bulk_reindex([d for d in touched if should_reindex(d)], index)
    logger.info(
        "Refreshed %s: +%d datasets, %d refreshed, %d stale",
        database.name, summary.datasets_created, summary.datasets_refreshed, summary.datasets_marked_stale,
    )
    return summary


def _refresh_datasets(
    pipeline: MutationPipeline,
    schema: Schema,
    relations: list[RelationInfo],
    mark_stale: bool,
    summary: RefreshSummary,
) -> list[Dataset]:
    current = {
        (d.name, d.kind): d
        for d in datasets_in_schema(pipeline.session, schema.id)
        if not d.is_chorus_view
    }
    seen = set()
    touched: list[Dataset] = []
    for relation in relations:
        key = (relation.name, relation.kind)
        seen.add(key)
        dataset = current.get(key)
        if dataset is None:
            dataset = Dataset(
                schema_id=schema.id, name=relation.name, kind=relation.kind, description=relation.description
            )
            dataset.skip_search_index = True
            pipeline.create(dataset)
            summary.datasets_created += 1
        else:
            dataset.skip_search_index = True
            if dataset.stale_at is not None:
                pipeline.mark_fresh(dataset)
                summary.datasets_refreshed += 1
            if relation.description is not None and relation.description != dataset.description:
                pipeline.update(dataset, description=relation.description)
        touched.append(dataset)

    if mark_stale:
        for key, dataset in current.items():
            if key not in seen and dataset.stale_at is None:
                dataset.skip_search_index = True
                pipeline.mark_stale(dataset)
                summary.datasets_marked_stale += 1
                dataset.skip_search_index = False
    return touched

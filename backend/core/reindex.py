"""
Reindex gate and bulk reindexing of datasets into the search index.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from core.catalog_queries import datasets_in_database
from core.errors import ParentNotFound
from core.mutations import Mutation, MutationKind
from core.staleness import is_stale
from models.entities import Database, Dataset, DatasetKind

logger = logging.getLogger(__name__)


def should_reindex(entity) -> bool:
    return not is_stale(entity) and not entity.skip_search_index


def search_document_id(dataset: Dataset) -> str:
    return f"Dataset {dataset.id}"


def search_document(dataset: Dataset) -> dict:
    schema = dataset.schema
    database = schema.database if schema is not None else None
    return {
        "id": search_document_id(dataset),
        "type": "Dataset",
        "kind": DatasetKind(dataset.kind).value,
        "name": dataset.name,
        "schema_name": schema.name if schema is not None else None,
        "database_name": database.name if database is not None else None,
        "data_source_id": database.data_source_id if database is not None else None,
        "table_description": dataset.description or "",
        "query": dataset.query or "",
    }


# ── Per-mutation gate ─────────────────────────────────────────────────────────

class SearchIndexHandler:
    """
    ``gate`` runs after the write, before commit, and decides what the index should
    hear about the dataset. ``push`` runs after commit and sends it. A failed push is
    logged; the committed mutation stands.
    """

    def __init__(self, index):
        self.index = index

    def gate(self, session: Session, mutation: Mutation) -> None:
        if not isinstance(mutation.entity, Dataset):
            return
        if mutation.kind is MutationKind.DESTROY:
            mutation.index_action = "remove"
        elif mutation.entity.deleted_at is not None:
            return
        elif should_reindex(mutation.entity):
            mutation.index_action = "index"

    def push(self, session: Session, mutation: Mutation) -> None:
        if mutation.index_action is None:
            return
        dataset = mutation.entity
        try:
            if mutation.index_action == "remove":
                self.index.remove(search_document_id(dataset))
            else:
                self.index.index(search_document(dataset))
            self.index.commit()
        except Exception as e:
            logger.warning("Search index %s failed for %r: %s", mutation.index_action, dataset, e)


# ── Bulk reindex ──────────────────────────────────────────────────────────────

@dataclass
class ReindexFailure:
    dataset_id: int
    error: str


@dataclass
class ReindexReport:
    succeeded: list[int] = field(default_factory=list)
    failed: list[ReindexFailure] = field(default_factory=list)
    committed: bool = False
    commit_error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


def bulk_reindex(datasets: Iterable[Dataset], index) -> ReindexReport:
    """Push every dataset, record each outcome, then commit exactly once."""
    report = ReindexReport()
    for dataset in datasets:
        try:
            index.index(search_document(dataset))
        except Exception as e:
            logger.warning("Reindex failed for %r: %s", dataset, e)
            report.failed.append(ReindexFailure(dataset.id, str(e)))
        else:
            report.succeeded.append(dataset.id)

    try:
        index.commit()
        report.committed = True
    except Exception as e:
        logger.error("Search index commit failed after %d documents: %s", report.total, e)
        report.commit_error = str(e)

    logger.info("Reindexed %d datasets (%d failed)", len(report.succeeded), len(report.failed))
    return report


def reindex_dataset_permissions(session: Session, database_id: int, index) -> ReindexReport:
    """Reindex every live, fresh dataset of a database."""
    database = session.get(Database, database_id)
    if database is None:
        raise ParentNotFound("Database", database_id)
    datasets = [d for d in datasets_in_database(session, database.id) if should_reindex(d)]
    return bulk_reindex(datasets, index)

"""Dataset lookups shared by the API, refresh and reindex code."""
import re
from typing import Iterable, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from models.entities import Dataset, DatasetKind, Schema

KIND_FILTERS = {
    "tables": [DatasetKind.TABLE],
    "views": [DatasetKind.VIEW],
    "views_tables": [DatasetKind.TABLE, DatasetKind.VIEW],
    "chorus_views": [DatasetKind.CHORUS_VIEW],
}


def live_datasets() -> Select:
    return select(Dataset).where(Dataset.deleted_at.is_(None))


def with_name_like(stmt: Select, name: Optional[str]) -> Select:
    if not name:
        return stmt
    return stmt.where(Dataset.name.ilike(f"%{name}%"))


def of_kind(stmt: Select, kind_filter: Optional[str]) -> Select:
    if not kind_filter:
        return stmt
    if kind_filter not in KIND_FILTERS:
        raise ValueError(f"Unknown dataset filter '{kind_filter}'")
    return stmt.where(Dataset.kind.in_(KIND_FILTERS[kind_filter]))


def list_order(stmt: Select) -> Select:
    # sorts "_users" and "users" together
    return stmt.order_by(func.lower(func.replace(Dataset.name, "_", "")), Dataset.id)


def datasets_in_schema(
    session: Session,
    schema_id: int,
    name_like: Optional[str] = None,
    kind_filter: Optional[str] = None,
) -> list[Dataset]:
    stmt = live_datasets().where(Dataset.schema_id == schema_id)
    stmt = list_order(of_kind(with_name_like(stmt, name_like), kind_filter))
    return list(session.scalars(stmt))


def datasets_in_database(session: Session, database_id: int) -> list[Dataset]:
    stmt = live_datasets().join(Schema, Dataset.schema_id == Schema.id).where(Schema.database_id == database_id)
    return list(session.scalars(list_order(stmt)))


def find_live_dataset(session: Session, schema_id: int, name: str, kinds: Iterable[DatasetKind]) -> Optional[Dataset]:
    stmt = live_datasets().where(
        Dataset.schema_id == schema_id,
        Dataset.name == name,
        Dataset.kind.in_(list(kinds)),
    )
    return session.scalars(stmt).first()


def filter_by_name(datasets: Iterable[Dataset], name: Optional[str]) -> list[Dataset]:
    """In-memory counterpart of with_name_like, for already loaded lists."""
    if not name:
        return list(datasets)
    pattern = re.compile(re.escape(name), re.IGNORECASE)
    return [d for d in datasets if pattern.search(d.name)]

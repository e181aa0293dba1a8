"""
Database connector — SQLAlchemy engine factory and catalog reflection.
Supports SQLite and PostgreSQL. Lists databases, schemas, tables and views of a data source.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from config import settings
from core.errors import DataSourceUnreachable
from models.entities import DataSource, DatasetKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationInfo:
    name: str
    kind: DatasetKind
    description: Optional[str] = None


def create_engine_for(source: DataSource, database_name: Optional[str] = None):
    """Build and test a SQLAlchemy engine for one database of a data source."""
    url = source.database_url(database_name)
    connect_args = {} if source.db_type == "sqlite" else {"connect_timeout": settings.CONNECT_TIMEOUT_SECONDS}
    engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as e:
        engine.dispose()
        raise DataSourceUnreachable(f"Could not connect to {source.name}: {e}") from e
    return engine


def list_database_names(source: DataSource) -> list[str]:
    if source.db_type == "sqlite":
        return ["main"]   # one file, one database
    engine = create_engine_for(source)
    try:
        with engine.connect() as conn:
            rows = conn.execute(text(
                "SELECT datname FROM pg_database WHERE datallowconn AND NOT datistemplate ORDER BY datname"
            ))
            return [r[0] for r in rows]
    finally:
        engine.dispose()


def reflect_relations(source: DataSource, database_name: str) -> dict[str, list[RelationInfo]]:
    """
    Reflect every user schema of the database.
    Returns {schema_name: [RelationInfo, ...]} with tables first, then views.
    """
    engine = create_engine_for(source, database_name)
    try:
        insp = inspect(engine)
        skip = set(settings.system_schema_list)
        result: dict[str, list[RelationInfo]] = {}
        for schema_name in insp.get_schema_names():
            if schema_name in skip or schema_name.startswith("pg_temp"):
                continue
            relations = [
                RelationInfo(name, DatasetKind.TABLE, _table_comment(insp, name, schema_name))
                for name in insp.get_table_names(schema=schema_name)
            ]
            relations += [
                RelationInfo(name, DatasetKind.VIEW)
                for name in insp.get_view_names(schema=schema_name)
            ]
            result[schema_name] = relations
        logger.info(
            "Discovered %d relations in %d schemas of %s/%s",
            sum(len(r) for r in result.values()), len(result), source.name, database_name,
        )
        return result
    finally:
        engine.dispose()


def _table_comment(insp, table_name: str, schema: Optional[str]) -> Optional[str]:
    if not insp.dialect.supports_comments:
        return None
    return insp.get_table_comment(table_name, schema=schema).get("text")

"""Database → schema staleness cascade."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.errors import ParentNotFound
from core.mutations import Mutation, MutationKind, MutationPipeline
from models.entities import Database, Schema

logger = logging.getLogger(__name__)


def cascade_staleness(session: Session, mutation: Mutation) -> None:
    """
    before_write hook. A database turning stale marks every schema it owns stale
    at the same instant, inside the same transaction. Turning fresh again does not
    touch the schemas.
    """
    if not isinstance(mutation.entity, Database) or mutation.kind is not MutationKind.UPDATE:
        return
    change = mutation.staleness
    if change is None or not change.became_stale:
        return
    database = mutation.entity
    schemas = list(session.scalars(select(Schema).where(Schema.database_id == database.id)))
    for schema in schemas:
        schema.stale_at = change.new
    logger.info("Database %s stale, %d schemas marked stale", database.name, len(schemas))


def _load_database(session: Session, database_id: int) -> Database:
    database = session.get(Database, database_id)
    if database is None:
        raise ParentNotFound("Database", database_id)
    return database


def mark_database_stale(pipeline: MutationPipeline, database_id: int) -> Database:
    return pipeline.mark_stale(_load_database(pipeline.session, database_id))


def mark_database_fresh(pipeline: MutationPipeline, database_id: int) -> Database:
    return pipeline.mark_fresh(_load_database(pipeline.session, database_id))

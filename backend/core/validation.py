"""
Entity validation, run as the first before_write hook.
Raises ValidationFailed with per-field messages before anything is flushed.
"""
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.errors import ValidationFailed
from core.mutations import Mutation, MutationKind
from models.entities import Database, DataSource, Dataset, Schema

BLANK = "can't be blank"
INVALID = "is invalid"
TAKEN = "has already been taken"

DATABASE_NAME_RE = re.compile(r"^[^/?&]*$")


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _excluding_self(stmt, model, entity):
    return stmt.where(model.id != entity.id) if entity.id is not None else stmt


def validate_dataset(session: Session, dataset: Dataset) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    if dataset.schema_id is None and dataset.schema is None:
        errors.setdefault("schema", []).append(BLANK)
    elif dataset.schema is None and session.get(Schema, dataset.schema_id) is None:
        errors.setdefault("schema", []).append(BLANK)
    if _blank(dataset.name):
        errors.setdefault("name", []).append(BLANK)
    if errors:
        return errors

    schema_id = dataset.schema_id if dataset.schema_id is not None else dataset.schema.id
    stmt = select(Dataset.id).where(
        Dataset.schema_id == schema_id,
        Dataset.kind == dataset.kind,
        Dataset.name == dataset.name,
        Dataset.deleted_at.is_(None) if dataset.deleted_at is None else Dataset.deleted_at == dataset.deleted_at,
    )
    if session.scalars(_excluding_self(stmt, Dataset, dataset)).first() is not None:
        errors.setdefault("name", []).append(TAKEN)
    return errors


def validate_database(session: Session, database: Database) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    if _blank(database.name):
        errors["name"] = [BLANK]
        return errors
    if not DATABASE_NAME_RE.match(database.name):
        errors["name"] = [INVALID]
        return errors
    if database.data_source_id is None and database.data_source is None:
        return {"data_source": [BLANK]}
    source_id = database.data_source_id if database.data_source_id is not None else database.data_source.id
    stmt = select(Database.id).where(Database.data_source_id == source_id, Database.name == database.name)
    if session.scalars(_excluding_self(stmt, Database, database)).first() is not None:
        errors["name"] = [TAKEN]
    return errors


def validate_schema(session: Session, schema: Schema) -> dict[str, list[str]]:
    if _blank(schema.name):
        return {"name": [BLANK]}
    if schema.database_id is None and schema.database is None:
        return {"database": [BLANK]}
    database_id = schema.database_id if schema.database_id is not None else schema.database.id
    stmt = select(Schema.id).where(Schema.database_id == database_id, Schema.name == schema.name)
    if session.scalars(_excluding_self(stmt, Schema, schema)).first() is not None:
        return {"name": [TAKEN]}
    return {}


def validate_data_source(session: Session, source: DataSource) -> dict[str, list[str]]:
    if _blank(source.name):
        return {"name": [BLANK]}
    stmt = select(DataSource.id).where(DataSource.name == source.name)
    if session.scalars(_excluding_self(stmt, DataSource, source)).first() is not None:
        return {"name": [TAKEN]}
    return {}


_VALIDATORS = {
    DataSource: validate_data_source,
    Dataset: validate_dataset,
    Database: validate_database,
    Schema: validate_schema,
}


def validate(session: Session, mutation: Mutation) -> None:
    if mutation.kind is MutationKind.DESTROY:
        return
    validator = _VALIDATORS.get(type(mutation.entity))
    if validator is None:
        return
    errors = validator(session, mutation.entity)
    if errors:
        raise ValidationFailed(errors)

"""Chorus views: datasets derived from a user query rather than a physical relation."""
import logging
from typing import Optional

from core.errors import ParentNotFound
from core.mutations import MutationPipeline
from models.entities import Dataset, DatasetKind, Schema

logger = logging.getLogger(__name__)


def create_chorus_view(
    pipeline: MutationPipeline,
    schema_id: int,
    name: str,
    query: str,
    description: Optional[str] = None,
) -> Dataset:
    schema = pipeline.session.get(Schema, schema_id)
    if schema is None:
        raise ParentNotFound("Schema", schema_id)
    view = Dataset(
        schema_id=schema.id,
        name=name,
        kind=DatasetKind.CHORUS_VIEW,
        query=query,
        description=description,
    )
    pipeline.create(view)
    logger.info("Chorus view %s created in schema %s", name, schema.name)
    return view

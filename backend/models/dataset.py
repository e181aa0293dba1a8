"""Pydantic schemas for schemas, datasets, chorus views and batch operation reports."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models.entities import DatasetKind


class DatasetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    schema_id: int
    name: str
    kind: DatasetKind
    description: Optional[str] = None
    query: Optional[str] = None
    stale_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class ChorusViewRequest(BaseModel):
    name: str = Field(..., description="Name of the chorus view, unique within the schema")
    query: str = Field(..., min_length=1, description="SQL the view is derived from")
    description: Optional[str] = None


class SchemaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    database_id: int
    name: str
    stale_at: Optional[datetime] = None
    active_tables_and_views_count: int


class DatabaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    data_source_id: int
    name: str
    stale_at: Optional[datetime] = None
    schemas: list[SchemaResponse] = []


class ReindexFailureItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    dataset_id: int
    error: str


class ReindexResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    succeeded: list[int]
    failed: list[ReindexFailureItem]
    committed: bool
    commit_error: Optional[str] = None


class RefreshResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    database_id: int
    schemas_created: int
    schemas_marked_stale: int
    datasets_created: int
    datasets_refreshed: int
    datasets_marked_stale: int
    reindex: ReindexResponse

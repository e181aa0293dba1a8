"""/api/schemas — schema details, dataset listings and chorus view creation."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_or_404, get_pipeline
from core.catalog_queries import KIND_FILTERS, datasets_in_schema
from core.chorus_views import create_chorus_view
from core.mutations import MutationPipeline
from models.dataset import ChorusViewRequest, DatasetResponse, SchemaResponse
from models.entities import Schema

router = APIRouter()


@router.get("/schemas/{schema_id}", response_model=SchemaResponse)
def get_schema(schema_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return get_or_404(pipeline.session, Schema, schema_id)


@router.get("/schemas/{schema_id}/datasets", response_model=list[DatasetResponse])
def list_datasets(
    schema_id: int,
    name: Optional[str] = Query(None, description="Case-insensitive substring of the dataset name"),
    filter: Optional[str] = Query(None, description=f"One of: {', '.join(KIND_FILTERS)}"),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    get_or_404(pipeline.session, Schema, schema_id)
    try:
        return datasets_in_schema(pipeline.session, schema_id, name_like=name, kind_filter=filter)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/schemas/{schema_id}/chorus_views", response_model=DatasetResponse, status_code=201)
def new_chorus_view(schema_id: int, req: ChorusViewRequest, pipeline: MutationPipeline = Depends(get_pipeline)):
    return create_chorus_view(pipeline, schema_id, req.name, req.query, req.description)

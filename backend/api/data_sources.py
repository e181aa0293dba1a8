"""/api/data_sources — register data sources and sync their database lists."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select

from api.deps import get_or_404, get_pipeline
from core.mutations import MutationPipeline
from core.refresh import refresh_databases
from models.data_source import DatabaseItem, DataSourceRequest, DataSourceResponse
from models.entities import DataSource

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/data_sources", response_model=DataSourceResponse, status_code=201)
def register_data_source(req: DataSourceRequest, pipeline: MutationPipeline = Depends(get_pipeline)):
    source = DataSource(**req.model_dump())
    pipeline.create(source)
    logger.info("Registered data source %s (%s)", source.name, source.db_type)
    return source


@router.get("/data_sources", response_model=list[DataSourceResponse])
def list_data_sources(pipeline: MutationPipeline = Depends(get_pipeline)):
    return list(pipeline.session.scalars(select(DataSource).order_by(DataSource.name)))


@router.get("/data_sources/{source_id}", response_model=DataSourceResponse)
def get_data_source(source_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return get_or_404(pipeline.session, DataSource, source_id)


@router.delete("/data_sources/{source_id}")
def delete_data_source(source_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    source = get_or_404(pipeline.session, DataSource, source_id)
    name = source.name
    pipeline.destroy(source)
    return {"message": f"Data source '{name}' removed successfully."}


@router.post("/data_sources/{source_id}/refresh", response_model=list[DatabaseItem])
def refresh_data_source(source_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    """Create missing databases, mark found ones fresh and vanished ones stale."""
    source = get_or_404(pipeline.session, DataSource, source_id)
    return refresh_databases(pipeline, source)

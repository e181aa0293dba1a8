"""/api/databases — staleness, refresh and search reindex of one database."""
import logging

from fastapi import APIRouter, Depends

from api.deps import get_or_404, get_pipeline
from core.cascade import mark_database_fresh, mark_database_stale
from core.mutations import MutationPipeline
from core.refresh import refresh_database
from core.reindex import reindex_dataset_permissions
from integrations.search_index import get_search_index
from models.dataset import DatabaseResponse, RefreshResponse, ReindexResponse
from models.entities import Database

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/databases/{database_id}", response_model=DatabaseResponse)
def get_database(database_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return get_or_404(pipeline.session, Database, database_id)


@router.post("/databases/{database_id}/stale", response_model=DatabaseResponse)
def stale_database(database_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    """Mark the database stale; every schema it owns becomes stale with it."""
    return mark_database_stale(pipeline, database_id)


@router.post("/databases/{database_id}/fresh", response_model=DatabaseResponse)
def fresh_database(database_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return mark_database_fresh(pipeline, database_id)


@router.post("/databases/{database_id}/refresh", response_model=RefreshResponse)
def refresh(database_id: int, pipeline: MutationPipeline = Depends(get_pipeline), index=Depends(get_search_index)):
    return refresh_database(pipeline, index, database_id)


@router.post("/databases/{database_id}/reindex", response_model=ReindexResponse)
def reindex(database_id: int, pipeline: MutationPipeline = Depends(get_pipeline), index=Depends(get_search_index)):
    report = reindex_dataset_permissions(pipeline.session, database_id, index)
    if report.failed:
        logger.warning("Reindex of database %s: %d failures", database_id, len(report.failed))
    return report

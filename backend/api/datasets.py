"""/api/datasets — dataset staleness and removal."""
from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_or_404, get_pipeline
from core.mutations import MutationPipeline
from models.dataset import DatasetResponse
from models.entities import Dataset

router = APIRouter()


def _live_dataset(pipeline: MutationPipeline, dataset_id: int) -> Dataset:
    dataset = get_or_404(pipeline.session, Dataset, dataset_id)
    if dataset.deleted_at is not None:
        raise HTTPException(404, detail=f"Dataset {dataset_id} not found.")
    return dataset


@router.get("/datasets/{dataset_id}", response_model=DatasetResponse)
def get_dataset(dataset_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return _live_dataset(pipeline, dataset_id)


@router.post("/datasets/{dataset_id}/stale", response_model=DatasetResponse)
def stale_dataset(dataset_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return pipeline.mark_stale(_live_dataset(pipeline, dataset_id))


@router.post("/datasets/{dataset_id}/fresh", response_model=DatasetResponse)
def fresh_dataset(dataset_id: int, pipeline: MutationPipeline = Depends(get_pipeline)):
    return pipeline.mark_fresh(_live_dataset(pipeline, dataset_id))


@router.delete("/datasets/{dataset_id}")
def delete_dataset(
    dataset_id: int,
    hard: bool = Query(False, description="Remove the row instead of soft-deleting it"),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    dataset = _live_dataset(pipeline, dataset_id)
    name = dataset.name
    if hard:
        pipeline.destroy(dataset)
    else:
        pipeline.soft_delete(dataset)
    return {"message": f"Dataset '{name}' removed successfully."}

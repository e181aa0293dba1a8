"""Shared FastAPI dependencies."""
from typing import TypeVar

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from core.mutations import MutationPipeline, build_pipeline
from integrations.search_index import get_search_index
from models.base import get_session

T = TypeVar("T")


def get_pipeline(session: Session = Depends(get_session), index=Depends(get_search_index)) -> MutationPipeline:
    return build_pipeline(session, index)


def get_or_404(session: Session, model: type[T], entity_id: int) -> T:
    entity = session.get(model, entity_id)
    if entity is None:
        raise HTTPException(404, detail=f"{model.__name__} {entity_id} not found.")
    return entity

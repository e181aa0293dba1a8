"""GET /api/health — system dependency check."""
import logging

from fastapi import APIRouter, Depends

from integrations.search_index import get_search_index
from models import base

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(index=Depends(get_search_index)):
    catalog_status = _check_catalog()
    index_status = _check_search_index(index)
    overall = "ok" if catalog_status["status"] == "up" and index_status["status"] == "up" else "degraded"
    return {
        "status": overall,
        "services": {
            "catalog":      catalog_status,
            "search_index": index_status,
        },
    }


def _check_catalog() -> dict:
    try:
        base.healthcheck()
        return {"status": "up", "url": base.engine.url.render_as_string(hide_password=True)}
    except Exception as e:
        return {"status": "down", "error": str(e)}


def _check_search_index(index) -> dict:
    try:
        if not index.ping():
            return {"status": "down", "error": "ping returned not OK"}
        return {"status": "up", "backend": type(index).__name__}
    except Exception as e:
        return {"status": "down", "error": str(e)}

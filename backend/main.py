"""
Chorus Catalog — dataset freshness, counter cache and search reindexing service.
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import health, data_sources, databases, schemas, datasets
from config import settings
from core.errors import DataSourceUnreachable, ParentNotFound, ValidationFailed
from models.base import init_db

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("chorus_catalog")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Chorus Catalog starting up…")
    init_db()
    yield
    logger.info("Chorus Catalog shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Chorus Catalog",
    description="Dataset catalog with staleness tracking, schema counters and search indexing.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(ParentNotFound)
async def parent_not_found(request: Request, exc: ParentNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationFailed)
async def validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=422, content={"detail": "Validation failed", "errors": exc.errors})


@app.exception_handler(DataSourceUnreachable)
async def data_source_unreachable(request: Request, exc: DataSourceUnreachable):
    logger.warning("Data source unreachable: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,       prefix="/api")
app.include_router(data_sources.router, prefix="/api")
app.include_router(databases.router,    prefix="/api")
app.include_router(schemas.router,      prefix="/api")
app.include_router(datasets.router,     prefix="/api")

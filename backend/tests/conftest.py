import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from types import SimpleNamespace
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from core.mutations import build_pipeline
from integrations.search_index import MemorySearchIndex, get_search_index
from main import app
from models import base
from models.entities import DataSource, Database, Dataset, DatasetKind, Schema


@pytest.fixture
def engine():
    e = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    base.override_engine(e)
    base.init_db()
    yield e
    e.dispose()


@pytest.fixture
def session(engine):
    s = base.SessionLocal()
    yield s
    s.close()


@pytest.fixture
def index():
    return MemorySearchIndex()


@pytest.fixture
def pipeline(session, index):
    return build_pipeline(session, index)


@pytest.fixture
def catalog(pipeline):
    source = pipeline.create(DataSource(name="gpdb", db_type="postgresql", host="localhost"))
    database = pipeline.create(Database(data_source_id=source.id, name="analytics"))
    schema = pipeline.create(Schema(database_id=database.id, name="public"))
    return SimpleNamespace(source=source, database=database, schema=schema)


@pytest.fixture
def add_dataset(pipeline, catalog):
    def _add(name, kind=DatasetKind.TABLE, schema=None, **attrs):
        dataset = Dataset(schema_id=(schema or catalog.schema).id, name=name, kind=kind, **attrs)
        return pipeline.create(dataset)
    return _add


@pytest.fixture
def active_count(session, catalog):
    def _count(schema=None):
        schema = schema or catalog.schema
        session.refresh(schema)
        return schema.active_tables_and_views_count
    return _count


@pytest.fixture
def client(engine, index):
    app.dependency_overrides[get_search_index] = lambda: index
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        cur.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT UNIQUE);")
        cur.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER REFERENCES users(id), total REAL);")
        cur.execute("CREATE VIEW big_orders AS SELECT * FROM orders WHERE total > 100;")
        cur.execute("INSERT INTO users (name, email) VALUES ('Test User', 'test@example.com');")
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)

import pytest

from core.catalog_queries import datasets_in_database, datasets_in_schema, filter_by_name
from models.entities import DatasetKind, Schema


@pytest.fixture
def populated(add_dataset):
    add_dataset("Orders")
    add_dataset("_order_items")
    add_dataset("customers")
    add_dataset("recent_orders", DatasetKind.VIEW)
    add_dataset("order_report", DatasetKind.CHORUS_VIEW, query="select 1")


def _names(datasets):
    return [d.name for d in datasets]


def test_list_order_ignores_case_and_underscores(session, catalog, populated):
    names = _names(datasets_in_schema(session, catalog.schema.id))
    assert names == ["customers", "_order_items", "order_report", "Orders", "recent_orders"]


def test_name_like_is_case_insensitive(session, catalog, populated):
    names = _names(datasets_in_schema(session, catalog.schema.id, name_like="ORDER"))
    assert set(names) == {"Orders", "_order_items", "recent_orders", "order_report"}


@pytest.mark.parametrize("kind_filter, expected", [
    ("tables", {"Orders", "_order_items", "customers"}),
    ("views", {"recent_orders"}),
    ("views_tables", {"Orders", "_order_items", "customers", "recent_orders"}),
    ("chorus_views", {"order_report"}),
])
def test_kind_filters(session, catalog, populated, kind_filter, expected):
    assert set(_names(datasets_in_schema(session, catalog.schema.id, kind_filter=kind_filter))) == expected


def test_unknown_kind_filter(session, catalog):
    with pytest.raises(ValueError):
        datasets_in_schema(session, catalog.schema.id, kind_filter="tablez")


def test_datasets_in_database_spans_schemas(pipeline, session, catalog, add_dataset):
    sales = pipeline.create(Schema(database_id=catalog.database.id, name="sales"))
    add_dataset("a")
    add_dataset("b", schema=sales)
    assert _names(datasets_in_database(session, catalog.database.id)) == ["a", "b"]


def test_filter_by_name(session, catalog, populated):
    datasets = datasets_in_schema(session, catalog.schema.id)
    assert set(_names(filter_by_name(datasets, "CUST"))) == {"customers"}
    assert len(filter_by_name(datasets, "")) == len(datasets)
    assert filter_by_name(datasets, "(") == []

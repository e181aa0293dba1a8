from models.entities import DataSource, Database, Schema, Dataset, DatasetKind  # noqa: F401
from models.data_source import DataSourceRequest, DataSourceResponse  # noqa: F401
from models.dataset import DatasetResponse, SchemaResponse, DatabaseResponse, ChorusViewRequest  # noqa: F401

"""
Catalog entities persisted with SQLAlchemy.
DataSource → Database → Schema → Dataset, each level owned exclusively by its parent.
"""
import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DatasetKind(str, enum.Enum):
    TABLE = "table"
    VIEW = "view"
    CHORUS_VIEW = "chorus_view"   # derived from a user query, no physical relation


class DataSource(Base):
    __tablename__ = "data_sources"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True)
    db_type: Mapped[str] = mapped_column(String(32))
    host: Mapped[Optional[str]] = mapped_column(String(255), default=None)
    port: Mapped[Optional[int]] = mapped_column(Integer, default=5432)
    username: Mapped[Optional[str]] = mapped_column(String(128), default=None)
    password: Mapped[Optional[str]] = mapped_column(String(255), default=None)
    file_path: Mapped[Optional[str]] = mapped_column(String(1024), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    databases: Mapped[list["Database"]] = relationship(
        back_populates="data_source", cascade="all, delete-orphan", order_by="Database.name"
    )

    def database_url(self, database_name: Optional[str] = None) -> str:
        if self.db_type == "sqlite":
            return f"sqlite:///{self.file_path}"
        return (
            f"postgresql+psycopg2://{self.username}:{self.password}"
            f"@{self.host}:{self.port or 5432}/{database_name or 'postgres'}"
        )


class Database(Base):
    __tablename__ = "databases"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    data_source_id: Mapped[int] = mapped_column(ForeignKey("data_sources.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    stale_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    data_source: Mapped[DataSource] = relationship(back_populates="databases")
    schemas: Mapped[list["Schema"]] = relationship(
        back_populates="database", cascade="all, delete-orphan", order_by="Schema.name"
    )

    __table_args__ = (
        UniqueConstraint("data_source_id", "name", name="uq_databases_source_name"),
    )

    def __repr__(self) -> str:
        return f"<Database {self.id} {self.name!r}>"


class Schema(Base):
    __tablename__ = "schemas"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    database_id: Mapped[int] = mapped_column(ForeignKey("databases.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    stale_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None)
    # Maintained by core.counter_cache only
    active_tables_and_views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    database: Mapped[Database] = relationship(back_populates="schemas")
    datasets: Mapped[list["Dataset"]] = relationship(back_populates="schema", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("database_id", "name", name="uq_schemas_database_name"),
    )

    def __repr__(self) -> str:
        return f"<Schema {self.id} {self.name!r}>"


class Dataset(Base):
    __tablename__ = "datasets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schema_id: Mapped[Optional[int]] = mapped_column(ForeignKey("schemas.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    kind: Mapped[DatasetKind] = mapped_column(
        Enum(DatasetKind, native_enum=False, length=32, values_callable=lambda e: [m.value for m in e])
    )
    description: Mapped[Optional[str]] = mapped_column(Text, default=None)
    query: Mapped[Optional[str]] = mapped_column(Text, default=None)
    stale_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    schema: Mapped[Optional[Schema]] = relationship(back_populates="datasets")

    # Transient, never persisted: bulk callers set it to hold back index pushes
    skip_search_index = False

    __table_args__ = (
        Index("ix_datasets_schema_kind_name", "schema_id", "kind", "name"),
    )

    @property
    def is_chorus_view(self) -> bool:
        return self.kind == DatasetKind.CHORUS_VIEW

    @property
    def database(self) -> Optional[Database]:
        return self.schema.database if self.schema is not None else None

    def __repr__(self) -> str:
        return f"<Dataset {self.id} {DatasetKind(self.kind).value} {self.name!r}>"

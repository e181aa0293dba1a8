"""Pydantic schemas for data source registration and database listings."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DataSourceRequest(BaseModel):
    db_type: Literal["sqlite", "postgresql"] = Field(..., description="Database engine type")
    name: str = Field(..., min_length=1, description="Unique name for this data source")

    # SQLite only
    file_path: Optional[str] = Field(None, description="Absolute path to .db file (SQLite only)")

    # PostgreSQL only
    host: Optional[str] = Field(None, description="Database host")
    port: Optional[int] = Field(5432, description="Database port")
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")

    @model_validator(mode="after")
    def _check_location(self):
        if self.db_type == "sqlite" and not self.file_path:
            raise ValueError("file_path is required for sqlite data sources")
        if self.db_type == "postgresql" and not self.host:
            raise ValueError("host is required for postgresql data sources")
        return self


class DatabaseItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    stale_at: Optional[datetime] = None


class DataSourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    db_type: str
    host: Optional[str] = None
    port: Optional[int] = None
    file_path: Optional[str] = None
    databases: list[DatabaseItem] = []

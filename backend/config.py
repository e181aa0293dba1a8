"""Application settings loaded from .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Catalog store
    CATALOG_DATABASE_URL: str = "sqlite:///./catalog.db"
    CATALOG_ECHO_SQL: bool = False

    # Search index
    SEARCH_INDEX_BACKEND: str = "memory"          # memory | solr
    SOLR_URL: str = "http://localhost:8983/solr/catalog"
    SOLR_TIMEOUT_SECONDS: int = 30

    # Data source connections
    CONNECT_TIMEOUT_SECONDS: int = 10
    REFRESH_MARK_STALE: bool = True
    SYSTEM_SCHEMAS: str = "information_schema,pg_catalog,pg_toast,gp_toolkit"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def system_schema_list(self) -> list[str]:
        return [s.strip() for s in self.SYSTEM_SCHEMAS.split(",") if s.strip()]


settings = Settings()

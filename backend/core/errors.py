"""Catalog exception hierarchy. Mapped to HTTP responses in main.py."""
from typing import Any


class CatalogError(Exception):
    """Base class for errors raised by catalog operations."""


class ParentNotFound(CatalogError):
    """The owning row of a counter, cascade or reindex operation does not exist."""

    def __init__(self, model: str, key: Any):
        self.model = model
        self.key = key
        super().__init__(f"{model} {key} not found")


class ValidationFailed(CatalogError):
    """Raised before any write when an entity breaks a constraint."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Validation failed: {fields}")


class DataSourceUnreachable(CatalogError):
    pass

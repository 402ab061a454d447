"""Data access layer."""

from agro_canvas.repositories.project_store import (
    SCHEMA_VERSION,
    ProjectStore,
    StorageInfo,
    StorageKeys,
    derive_project_id,
)

__all__ = [
    "SCHEMA_VERSION",
    "ProjectStore",
    "StorageInfo",
    "StorageKeys",
    "derive_project_id",
]

"""SQLAlchemy models."""

from agro_canvas.models.storage_entry import StorageEntry

__all__ = ["StorageEntry"]

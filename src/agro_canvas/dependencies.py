"""FastAPI dependencies for the Agro Canvas API."""

from agro_canvas.repositories import ProjectStore
from agro_canvas.storage import SqlStorage

# Process-wide store; created on first request
_store: ProjectStore | None = None


def get_store() -> ProjectStore:
    """Get or create the project store backed by the configured database."""
    global _store
    if _store is None:
        _store = ProjectStore(SqlStorage())
    return _store

"""Pytest configuration and fixtures for agro_canvas tests."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from agro_canvas.config import Settings
from agro_canvas.dependencies import get_store
from agro_canvas.main import app
from agro_canvas.repositories import ProjectStore
from agro_canvas.schemas import (
    CanvasSize,
    DrawingElement,
    Plant,
    ProjectData,
    Structure,
    StructureSize,
    Terrain,
)
from agro_canvas.storage import MemoryStorage, StorageError

# Fixed creation time used by project fixtures (2023-11-14T22:13:20Z)
BASE_TIMESTAMP = 1_700_000_000_000


class FlakyStorage(MemoryStorage):
    """Memory storage that fails on selected keys, or on everything."""

    def __init__(self, failing_keys: tuple[str, ...] = (), fail_all: bool = False) -> None:
        super().__init__()
        self.failing_keys = set(failing_keys)
        self.fail_all = fail_all

    def _check(self, key: str) -> None:
        if self.fail_all or key in self.failing_keys:
            raise StorageError(f"substrate unavailable for {key}")

    def get_item(self, key: str) -> str | None:
        if self.fail_all:
            raise StorageError("substrate unavailable")
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self._check(key)
        super().set_item(key, value)

    def remove_item(self, key: str) -> None:
        self._check(key)
        super().remove_item(key)


def make_plant(**overrides) -> Plant:
    data = {
        "id": "banana",
        "name": "Banana",
        "spacing": "3x3m",
        "category": "fruit",
        "color": "#FFD700",
    }
    data.update(overrides)
    return Plant(**data)


def make_terrain(**overrides) -> Terrain:
    data = {
        "id": "mulch",
        "name": "Cobertura morta",
        "category": "soil",
        "color": "#8B4513",
        "brush_thickness": 10,
    }
    data.update(overrides)
    return Terrain(**data)


def make_structure(**overrides) -> Structure:
    data = {
        "id": "greenhouse",
        "name": "Estufa",
        "category": "building",
        "color": "#696969",
        "size": StructureSize(width=6, height=4),
    }
    data.update(overrides)
    return Structure(**data)


def make_elements() -> list[DrawingElement]:
    """Two plants, one terrain patch, one structure and two shapes."""
    return [
        DrawingElement(id=1, type="plant", x=10, y=10, plant=make_plant(), selected=True),
        DrawingElement(
            id=2, type="plant", x=20, y=10, plant=make_plant(id="basil", spacing="30x30cm")
        ),
        DrawingElement(
            id=3,
            type="terrain",
            x=0,
            y=0,
            width=100,
            height=50,
            terrain=make_terrain(),
            real_world_width=10,
            real_world_height=5,
        ),
        DrawingElement(id=4, type="structure", x=40, y=5, structure=make_structure()),
        DrawingElement(id=5, type="rectangle", x=5, y=5, width=20, height=10, rotation=45),
        DrawingElement(id=6, type="circle", x=30, y=30, radius=4),
    ]


def make_project(timestamp: int = BASE_TIMESTAMP, elements=None, **overrides) -> ProjectData:
    data = {
        "version": "1.0",
        "timestamp": timestamp,
        "canvas_size": CanvasSize(width=50, height=30),
        "elements": elements if elements is not None else [],
        "selected_tool": "select",
    }
    data.update(overrides)
    return ProjectData(**data)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> ProjectStore:
    return ProjectStore(storage, Settings())


@pytest.fixture
def elements() -> list[DrawingElement]:
    return make_elements()


@pytest.fixture
def project(elements) -> ProjectData:
    return make_project(elements=elements)


@pytest_asyncio.fixture
async def client(store: ProjectStore):
    """Async test client for the FastAPI app, backed by in-memory storage."""
    app.dependency_overrides[get_store] = lambda: store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()

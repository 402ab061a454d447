"""Project schemas - the unit of save/load, its history summary and preferences."""

from typing import Literal

from pydantic import Field

from agro_canvas.schemas.base import CamelModel
from agro_canvas.schemas.catalog import CanvasSize, Plant, Structure, Terrain
from agro_canvas.schemas.element import DrawingElement

Theme = Literal["light", "dark", "system"]
Language = Literal["pt-BR", "en"]


class ProjectMetadata(CamelModel):
    """Derived and descriptive project metadata."""

    elements_count: int = 0
    total_area: float | None = None
    project_info: str | None = None
    tags: list[str] | None = None


class ProjectData(CamelModel):
    """The complete design state of a project."""

    version: str
    timestamp: int | float = Field(..., description="Creation time, epoch milliseconds")
    last_modified: str | None = Field(default=None, description="ISO-8601, set on save")
    canvas_size: CanvasSize
    elements: list[DrawingElement] = Field(default_factory=list)
    selected_tool: str
    selected_plant: Plant | None = None
    selected_terrain: Terrain | None = None
    selected_structure: Structure | None = None
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)


class ProjectHistoryEntry(CamelModel):
    """Lightweight summary of a saved project, used for listing."""

    id: str
    name: str
    timestamp: int | float
    last_modified: str
    canvas_size: CanvasSize
    elements_count: int
    thumbnail: str | None = Field(default=None, description="Base64-encoded preview image")
    tags: list[str] | None = None


class UserPreferences(CamelModel):
    """Process-wide user preferences."""

    theme: Theme = "light"
    grid_size: bool = True
    auto_save: bool = True
    auto_save_interval: float = Field(default=5, gt=0, description="Minutes between auto-saves")
    default_canvas_size: CanvasSize = Field(
        default_factory=lambda: CanvasSize(width=50, height=30)
    )
    show_tooltips: bool = True
    enable_sounds: bool = False
    language: Language = "pt-BR"

"""Export schemas - the portable, versioned project document."""

from typing import Literal

from pydantic import Field

from agro_canvas.schemas.base import CamelModel
from agro_canvas.schemas.catalog import CanvasSize, Plant, Structure, Terrain
from agro_canvas.schemas.element import BrushMode, BrushType, ElementType, PathPoint

EXPORT_FORMAT_VERSION = "1.0"


class CategoryCounts(CamelModel):
    """Element counts per category."""

    plants: int = 0
    terrain: int = 0
    structures: int = 0
    shapes: int = 0


class ProjectInfo(CamelModel):
    """Descriptive header of an exported project."""

    name: str | None = None
    description: str | None = None
    canvas_size: CanvasSize
    total_elements: int
    categories: CategoryCounts


class Origin(CamelModel):
    x: float = 0
    y: float = 0


class CoordinateSystem(CamelModel):
    system: Literal["meters"] = "meters"
    origin: Origin = Field(default_factory=Origin)


class ExportMetadata(CamelModel):
    export_date: str
    exported_by: str
    coordinates: CoordinateSystem = Field(default_factory=CoordinateSystem)


class ExportElement(CamelModel):
    """A DrawingElement flattened for interchange (no UI-only flags)."""

    id: int | float
    type: ElementType
    x: float
    y: float
    width: float | None = None
    height: float | None = None
    radius: float | None = None
    rotation: float | None = None
    plant: Plant | None = None
    terrain: Terrain | None = None
    structure: Structure | None = None
    real_world_width: float | None = None
    real_world_height: float | None = None
    brush_type: BrushType | None = None
    texture: str | None = None
    path_points: list[PathPoint] | None = None
    selected_brush_mode: BrushMode | None = None
    brush_thickness: float | None = None


class ExportData(CamelModel):
    """Top-level export document."""

    version: str
    timestamp: int | float
    project_info: ProjectInfo
    elements: list[ExportElement]
    metadata: ExportMetadata

"""DrawingElement schema - a single item placed on the canvas."""

from typing import Literal

from agro_canvas.schemas.base import CamelModel
from agro_canvas.schemas.catalog import Plant, Structure, Terrain

ElementType = Literal["plant", "terrain", "structure", "rectangle", "circle"]
BrushType = Literal["rectangle", "circle", "path", "brush"]
BrushMode = Literal["rectangle", "circle", "brush"]

ELEMENT_TYPES: tuple[str, ...] = ("plant", "terrain", "structure", "rectangle", "circle")


class PathPoint(CamelModel):
    """A vertex of a freehand brush path, in canvas coordinates."""

    x: float
    y: float


class DrawingElement(CamelModel):
    """An element on the canvas.

    Coordinates and dimensions are canvas units; ``real_world_width`` and
    ``real_world_height`` are meters. ``selected`` is UI state and is not
    carried into exports.
    """

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
    selected: bool | None = None
    selected_brush_mode: BrushMode | None = None
    brush_thickness: float | None = None

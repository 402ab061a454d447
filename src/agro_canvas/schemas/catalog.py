"""Catalog schemas - plants, terrain and structures placed on the canvas."""

from pydantic import Field

from agro_canvas.schemas.base import CamelModel


class Plant(CamelModel):
    """A plant species from the catalog.

    ``spacing`` is a planting distance such as ``"50cm"``, ``"2m"``,
    ``"1x1m"`` or ``"30x30cm"``; ``color`` is a ``#RRGGBB`` hex string.
    """

    id: str
    name: str
    spacing: str
    category: str
    color: str


class Terrain(CamelModel):
    """A terrain patch type (soil, mulch, water...) painted with a brush."""

    id: str
    name: str
    category: str
    color: str
    brush_thickness: float | None = Field(default=None, description="Stroke width, 1-100 px")


class StructureSize(CamelModel):
    """Footprint of a structure in meters."""

    width: float
    height: float


class Structure(CamelModel):
    """A built structure (greenhouse, compost bin, cistern...)."""

    id: str
    name: str
    category: str
    color: str
    size: StructureSize


class CanvasSize(CamelModel):
    """Canvas dimensions in meters."""

    width: float
    height: float

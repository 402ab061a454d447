"""Pydantic schemas for the project data model and export format."""

from agro_canvas.schemas.catalog import CanvasSize, Plant, Structure, StructureSize, Terrain
from agro_canvas.schemas.element import ELEMENT_TYPES, DrawingElement, ElementType, PathPoint
from agro_canvas.schemas.export import (
    EXPORT_FORMAT_VERSION,
    CategoryCounts,
    CoordinateSystem,
    ExportData,
    ExportElement,
    ExportMetadata,
    Origin,
    ProjectInfo,
)
from agro_canvas.schemas.project import (
    ProjectData,
    ProjectHistoryEntry,
    ProjectMetadata,
    UserPreferences,
)

__all__ = [
    # Catalog
    "CanvasSize",
    "Plant",
    "Structure",
    "StructureSize",
    "Terrain",
    # Elements
    "ELEMENT_TYPES",
    "DrawingElement",
    "ElementType",
    "PathPoint",
    # Project
    "ProjectData",
    "ProjectHistoryEntry",
    "ProjectMetadata",
    "UserPreferences",
    # Export
    "EXPORT_FORMAT_VERSION",
    "CategoryCounts",
    "CoordinateSystem",
    "ExportData",
    "ExportElement",
    "ExportMetadata",
    "Origin",
    "ProjectInfo",
]

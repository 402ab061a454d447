"""Validation rules for catalog items, canvas elements, projects and exports.

Every validator accepts either a schema instance or a plain mapping in the
camelCase wire form and returns a ``ValidationResult``; none of them raise.
Rules run cheapest-first and the first failing rule wins:

1. presence and type of required fields
2. string length bounds
3. format patterns (spacing, hex color)
4. numeric ranges
5. nested catalog items, reusing the catalog validators
"""

import json
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from agro_canvas.config import Settings, settings
from agro_canvas.results import ParseResult, ValidationResult
from agro_canvas.schemas.catalog import CanvasSize
from agro_canvas.schemas.element import ELEMENT_TYPES

# "50cm", "2m", "1x1m", "30x30cm"
SPACING_PATTERN = re.compile(r"([0-9]+(?:\.[0-9]+)?)(?:x([0-9]+(?:\.[0-9]+)?))?(cm|m)")
COLOR_PATTERN = re.compile(r"#[0-9A-Fa-f]{6}")

MAX_NAME_LENGTH = 100
MAX_COORDINATE = 100_000
MIN_STRUCTURE_SIZE = 0.1  # exclusive
MAX_STRUCTURE_SIZE = 100.0
MIN_BRUSH_THICKNESS = 1
MAX_BRUSH_THICKNESS = 100

PROJECT_REQUIRED_FIELDS = ("version", "timestamp", "canvasSize", "elements", "selectedTool")
EXPORT_REQUIRED_FIELDS = ("version", "timestamp", "projectInfo", "elements", "metadata")


def _default_min_canvas() -> CanvasSize:
    return CanvasSize(width=settings.min_canvas_width, height=settings.min_canvas_height)


def _default_max_canvas() -> CanvasSize:
    return CanvasSize(width=settings.max_canvas_width, height=settings.max_canvas_height)


@dataclass
class CanvasValidationOptions:
    """Tunable bounds for canvas, element and upload validation."""

    max_elements: int = field(default_factory=lambda: settings.max_elements)
    min_canvas_size: CanvasSize = field(default_factory=_default_min_canvas)
    max_canvas_size: CanvasSize = field(default_factory=_default_max_canvas)
    allowed_file_types: list[str] = field(
        default_factory=lambda: list(settings.allowed_file_types)
    )
    max_file_size: int = field(default_factory=lambda: settings.max_file_size)

    @classmethod
    def from_settings(cls, config: Settings) -> "CanvasValidationOptions":
        return cls(
            max_elements=config.max_elements,
            min_canvas_size=CanvasSize(
                width=config.min_canvas_width, height=config.min_canvas_height
            ),
            max_canvas_size=CanvasSize(
                width=config.max_canvas_width, height=config.max_canvas_height
            ),
            allowed_file_types=list(config.allowed_file_types),
            max_file_size=config.max_file_size,
        )


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    """Return the wire-form mapping for a schema instance or mapping, else None."""
    if isinstance(value, BaseModel):
        try:
            return value.model_dump(by_alias=True, exclude_none=True)
        except ValueError:
            return None
    if isinstance(value, Mapping):
        return value
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    if not _is_number(value):
        return False
    # ints are always finite; math.isfinite overflows on huge ones
    return isinstance(value, int) or math.isfinite(value)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _check_catalog_fields(
    data: Mapping[str, Any], label: str, required: tuple[str, ...]
) -> ValidationResult | None:
    """Presence/type checks shared by plants, terrain and structures."""
    messages = {
        "id": f"{label} ID is required and must be a string",
        "name": f"{label} name is required and must be a string",
        "spacing": f"{label} spacing is required",
        "category": f"{label} category is required",
        "color": f"{label} color is required",
    }
    for key in required:
        if not _is_text(data.get(key)):
            return ValidationResult.fail(messages[key])
    return None


def _check_name_length(data: Mapping[str, Any], label: str) -> ValidationResult | None:
    if len(data["name"]) > MAX_NAME_LENGTH:
        return ValidationResult.fail(
            f"{label} name must be at most {MAX_NAME_LENGTH} characters"
        )
    return None


def _check_color(data: Mapping[str, Any], label: str, example: str) -> ValidationResult | None:
    if not COLOR_PATTERN.fullmatch(data["color"]):
        return ValidationResult.fail(f"{label} color must be a valid hex color (e.g., {example})")
    return None


def validate_plant(plant: Any) -> ValidationResult:
    """Validate a catalog plant."""
    data = _as_mapping(plant)
    if data is None:
        return ValidationResult.fail("Invalid plant data")

    failure = _check_catalog_fields(data, "Plant", ("id", "name", "spacing", "category", "color"))
    if failure is None:
        failure = _check_name_length(data, "Plant")
    if failure is not None:
        return failure

    if not SPACING_PATTERN.fullmatch(data["spacing"]):
        return ValidationResult.fail(
            'Invalid plant spacing format. Use formats like "1x1m", "30x30cm", "50cm", or "2m"'
        )

    failure = _check_color(data, "Plant", "#FF6B6B")
    if failure is not None:
        return failure

    return ValidationResult.ok()


def validate_terrain(terrain: Any) -> ValidationResult:
    """Validate a terrain type, including its optional brush thickness."""
    data = _as_mapping(terrain)
    if data is None:
        return ValidationResult.fail("Invalid terrain data")

    failure = _check_catalog_fields(data, "Terrain", ("id", "name", "category", "color"))
    if failure is not None:
        return failure

    thickness = data.get("brushThickness")
    if thickness is not None and not _is_finite(thickness):
        return ValidationResult.fail("Terrain brush thickness must be a number")

    failure = _check_name_length(data, "Terrain")
    if failure is None:
        failure = _check_color(data, "Terrain", "#8B4513")
    if failure is not None:
        return failure

    if thickness is not None:
        if isinstance(thickness, float) and not thickness.is_integer():
            return ValidationResult.fail("Terrain brush thickness must be a whole number of pixels")
        if not MIN_BRUSH_THICKNESS <= thickness <= MAX_BRUSH_THICKNESS:
            return ValidationResult.fail(
                f"Terrain brush thickness must be between {MIN_BRUSH_THICKNESS} "
                f"and {MAX_BRUSH_THICKNESS} pixels"
            )

    return ValidationResult.ok()


def validate_structure(structure: Any) -> ValidationResult:
    """Validate a structure and its footprint in meters."""
    data = _as_mapping(structure)
    if data is None:
        return ValidationResult.fail("Invalid structure data")

    failure = _check_catalog_fields(data, "Structure", ("id", "name", "category", "color"))
    if failure is not None:
        return failure

    size = data.get("size")
    if not isinstance(size, Mapping):
        return ValidationResult.fail("Structure size is required")
    for dimension in ("width", "height"):
        if not _is_finite(size.get(dimension)):
            return ValidationResult.fail(f"Structure {dimension} must be a number")

    failure = _check_name_length(data, "Structure")
    if failure is None:
        failure = _check_color(data, "Structure", "#696969")
    if failure is not None:
        return failure

    for dimension in ("width", "height"):
        if not MIN_STRUCTURE_SIZE < size[dimension] <= MAX_STRUCTURE_SIZE:
            return ValidationResult.fail(
                f"Structure {dimension} must be greater than {MIN_STRUCTURE_SIZE:g} "
                f"and at most {MAX_STRUCTURE_SIZE:g} meters"
            )

    return ValidationResult.ok()


# optional element fields that must be finite and non-negative
_ELEMENT_DIMENSIONS = (
    "width",
    "height",
    "radius",
    "realWorldWidth",
    "realWorldHeight",
    "brushThickness",
)

# element type -> validator for the catalog item embedded under the same key
_NESTED_VALIDATORS: dict[str, Callable[[Any], ValidationResult]] = {
    "plant": validate_plant,
    "terrain": validate_terrain,
    "structure": validate_structure,
}


def validate_drawing_element(element: Any) -> ValidationResult:
    """Validate a canvas element and any catalog item embedded in it."""
    data = _as_mapping(element)
    if data is None:
        return ValidationResult.fail("Invalid element data")

    if not _is_number(data.get("id")):
        return ValidationResult.fail("Element ID is required and must be a number")

    element_type = data.get("type")
    if not _is_text(element_type):
        return ValidationResult.fail("Element type is required")

    for axis in ("x", "y"):
        if not _is_number(data.get(axis)):
            return ValidationResult.fail(f"Element {axis} position must be a number")

    for key in ("rotation",) + _ELEMENT_DIMENSIONS:
        value = data.get(key)
        if value is not None and not _is_number(value):
            return ValidationResult.fail(f"Element {key} must be a number")

    path_points = data.get("pathPoints")
    if path_points is not None:
        if not isinstance(path_points, (list, tuple)) or not all(
            isinstance(p, Mapping) and _is_finite(p.get("x")) and _is_finite(p.get("y"))
            for p in path_points
        ):
            return ValidationResult.fail("Element pathPoints must be a list of {x, y} points")

    selected = data.get("selected")
    if selected is not None and not isinstance(selected, bool):
        return ValidationResult.fail("Element selected flag must be a boolean")

    if element_type not in ELEMENT_TYPES:
        return ValidationResult.fail(f"Element type must be one of: {', '.join(ELEMENT_TYPES)}")

    for key in ("id", "x", "y", "rotation"):
        value = data.get(key)
        if value is not None and not _is_finite(value):
            return ValidationResult.fail(f"Element {key} must be a finite number")

    for key in _ELEMENT_DIMENSIONS:
        value = data.get(key)
        if value is not None and (not _is_finite(value) or value < 0):
            return ValidationResult.fail(f"Element {key} must be a finite, non-negative number")

    for axis in ("x", "y"):
        if abs(data[axis]) > MAX_COORDINATE:
            return ValidationResult.fail(
                f"Element {axis} coordinate is out of reasonable bounds "
                f"(must be within ±{MAX_COORDINATE})"
            )

    validator = _NESTED_VALIDATORS.get(element_type)
    if validator is not None:
        item = data.get(element_type)
        if item is not None:
            result = validator(item)
            if not result.is_valid:
                return result

    return ValidationResult.ok()


def validate_canvas_size(
    size: Any, options: CanvasValidationOptions | None = None
) -> ValidationResult:
    """Validate canvas dimensions against the configured bounds (meters)."""
    opts = options or CanvasValidationOptions()
    data = _as_mapping(size)
    if data is None:
        return ValidationResult.fail("Invalid canvas size data")

    for dimension in ("width", "height"):
        if not _is_finite(data.get(dimension)):
            return ValidationResult.fail(f"Canvas {dimension} must be a valid number")

    for dimension in ("width", "height"):
        low = getattr(opts.min_canvas_size, dimension)
        high = getattr(opts.max_canvas_size, dimension)
        if not low <= data[dimension] <= high:
            return ValidationResult.fail(
                f"Canvas {dimension} must be between {low:g} and {high:g} meters"
            )

    return ValidationResult.ok()


def validate_elements_array(
    elements: Any, options: CanvasValidationOptions | None = None
) -> ValidationResult:
    """Validate every element, reporting the first offending index."""
    opts = options or CanvasValidationOptions()
    if not isinstance(elements, (list, tuple)):
        return ValidationResult.fail("Elements must be an array", path="elements")

    if len(elements) > opts.max_elements:
        return ValidationResult.fail(
            f"Maximum {opts.max_elements} elements allowed", path="elements"
        )

    for index, element in enumerate(elements):
        result = validate_drawing_element(element)
        if not result.is_valid:
            return ValidationResult.fail(
                f"Element at index {index}: {result.error}", path=f"elements[{index}]"
            )

    return ValidationResult.ok()


def validate_canvas_state(
    elements: Any, canvas_size: Any, options: CanvasValidationOptions | None = None
) -> ValidationResult:
    """Validate canvas size, then the elements on it."""
    size_result = validate_canvas_size(canvas_size, options)
    if not size_result.is_valid:
        return ValidationResult.fail(size_result.error, path="canvasSize")

    return validate_elements_array(elements, options)


def validate_project_structure(project: Any) -> ValidationResult:
    """Required-field and type checks for a stored or incoming project."""
    data = _as_mapping(project)
    if data is None:
        return ValidationResult.fail("Invalid project data")

    for key in PROJECT_REQUIRED_FIELDS:
        if key not in data:
            return ValidationResult.fail(f"Missing required field: {key}", path=key)

    if not isinstance(data["version"], str):
        return ValidationResult.fail("Project version must be a string", path="version")

    timestamp = data["timestamp"]
    if not _is_finite(timestamp) or timestamp <= 0:
        return ValidationResult.fail(
            "Project timestamp must be a positive number", path="timestamp"
        )

    canvas = data["canvasSize"]
    if not isinstance(canvas, Mapping) or not (
        _is_number(canvas.get("width")) and _is_number(canvas.get("height"))
    ):
        return ValidationResult.fail(
            "Project canvas size must have numeric width and height", path="canvasSize"
        )

    if not isinstance(data["elements"], (list, tuple)):
        return ValidationResult.fail("Project elements must be an array", path="elements")

    if not isinstance(data["selectedTool"], str):
        return ValidationResult.fail(
            "Project selected tool must be a string", path="selectedTool"
        )

    metadata = data.get("metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        return ValidationResult.fail("Project metadata must be an object", path="metadata")

    last_modified = data.get("lastModified")
    if last_modified is not None and not isinstance(last_modified, str):
        return ValidationResult.fail(
            "Project lastModified must be an ISO-8601 string", path="lastModified"
        )

    return ValidationResult.ok()


def validate_project_data(
    project: Any, options: CanvasValidationOptions | None = None
) -> ValidationResult:
    """Full check of a project before it is written: structure, then canvas state."""
    result = validate_project_structure(project)
    if not result.is_valid:
        return result

    data = _as_mapping(project)
    return validate_canvas_state(data["elements"], data["canvasSize"], options)


def validate_export_data(
    document: Any, options: CanvasValidationOptions | None = None
) -> ValidationResult:
    """Validate an export document received from outside the application."""
    data = _as_mapping(document)
    if data is None:
        return ValidationResult.fail("Invalid export data")

    for key in EXPORT_REQUIRED_FIELDS:
        if key not in data:
            return ValidationResult.fail(f"Missing required field: {key}", path=key)

    if not isinstance(data["version"], str):
        return ValidationResult.fail("Export version must be a string", path="version")

    if not _is_finite(data["timestamp"]) or data["timestamp"] <= 0:
        return ValidationResult.fail(
            "Export timestamp must be a positive number", path="timestamp"
        )

    project_info = data["projectInfo"]
    if not isinstance(project_info, Mapping):
        return ValidationResult.fail("Project info must be an object", path="projectInfo")

    if "canvasSize" not in project_info:
        return ValidationResult.fail(
            "Project info canvas size is required", path="projectInfo.canvasSize"
        )
    size_result = validate_canvas_size(project_info["canvasSize"], options)
    if not size_result.is_valid:
        return ValidationResult.fail(size_result.error, path="projectInfo.canvasSize")

    if not isinstance(data["metadata"], Mapping):
        return ValidationResult.fail("Export metadata must be an object", path="metadata")

    return validate_elements_array(data["elements"], options)


def validate_file(
    content_type: str | None, size: int, options: CanvasValidationOptions | None = None
) -> ValidationResult:
    """Check an uploaded image's MIME type and size."""
    opts = options or CanvasValidationOptions()
    if not content_type:
        return ValidationResult.fail("No file provided")

    if content_type not in opts.allowed_file_types:
        return ValidationResult.fail(
            f"File type {content_type} is not allowed. "
            f"Allowed types: {', '.join(opts.allowed_file_types)}"
        )

    if size > opts.max_file_size:
        return ValidationResult.fail(
            "File size exceeds maximum allowed size of "
            f"{round(opts.max_file_size / 1024 / 1024)}MB"
        )

    return ValidationResult.ok()


def safe_json_parse(
    text: str | bytes, validator: Callable[[Any], Any] | None = None
) -> ParseResult:
    """Parse JSON without raising; optionally gate the result with ``validator``.

    ``validator`` may return a bool or a ``ValidationResult``.
    """
    try:
        parsed = json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return ParseResult(error="Invalid JSON format")

    if validator is not None and not validator(parsed):
        return ParseResult(error="Invalid data structure")

    return ParseResult(data=parsed)

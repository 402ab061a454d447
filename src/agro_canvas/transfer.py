"""Export/import codec for the portable project document.

``create_export_data`` flattens canvas elements into an ``ExportData``
document; ``decode_export_document`` is the only way an external file
becomes typed data again, and it either returns a fully validated
``ExportData`` or a ``DecodeError`` naming the offending path.
"""

import asyncio
import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from agro_canvas.config import settings
from agro_canvas.repositories.project_store import utc_now_iso
from agro_canvas.results import DecodeError, OperationResult
from agro_canvas.schemas import (
    EXPORT_FORMAT_VERSION,
    CanvasSize,
    CategoryCounts,
    DrawingElement,
    ExportData,
    ExportElement,
    ExportMetadata,
    ProjectData,
    ProjectInfo,
)
from agro_canvas.validation import (
    SPACING_PATTERN,
    safe_json_parse,
    validate_canvas_state,
    validate_export_data,
    validate_project_data,
)

logger = logging.getLogger(__name__)

DEFAULT_FILE_STEM = "agroecologia-project"


def _epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def count_categories(elements: Sequence[DrawingElement | ExportElement]) -> CategoryCounts:
    """Tally elements into plants, terrain, structures and shapes."""
    counts = CategoryCounts()
    for element in elements:
        if element.type == "plant":
            counts.plants += 1
        elif element.type == "terrain":
            counts.terrain += 1
        elif element.type == "structure":
            counts.structures += 1
        elif element.type in ("rectangle", "circle"):
            counts.shapes += 1
    return counts


def create_export_data(
    elements: Sequence[DrawingElement],
    canvas_size: CanvasSize,
    project_name: str | None = None,
    *,
    now: datetime | None = None,
) -> ExportData:
    """Build the export document for ``elements`` on a canvas of ``canvas_size``.

    UI-only state (``selected``) is dropped. Inputs are not modified.
    """
    now = now or datetime.now(UTC)
    export_elements = [
        ExportElement.model_validate(element.model_dump(exclude={"selected"}))
        for element in elements
    ]

    return ExportData(
        version=EXPORT_FORMAT_VERSION,
        timestamp=_epoch_ms(now),
        project_info=ProjectInfo(
            name=project_name or f"Projeto Agroecológico {now:%d/%m/%Y}",
            description=(
                f"Projeto com {len(elements)} elementos em área de "
                f"{canvas_size.width:g}x{canvas_size.height:g} metros"
            ),
            canvas_size=canvas_size.model_copy(),
            total_elements=len(elements),
            categories=count_categories(elements),
        ),
        elements=export_elements,
        metadata=ExportMetadata(
            export_date=utc_now_iso(now),
            exported_by=settings.exported_by,
        ),
    )


def serialize_export_data(data: ExportData) -> str:
    """Render an export document as pretty-printed JSON."""
    return data.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def _file_stem(name: str | None) -> str:
    stem = re.sub(r"[^\w.-]+", "-", name or "").strip("-.")
    return stem or DEFAULT_FILE_STEM


def export_project_as_json(
    elements: Sequence[DrawingElement],
    canvas_size: CanvasSize,
    project_name: str | None = None,
    directory: str | Path | None = None,
) -> OperationResult[Path]:
    """Write the export document to ``<name>-<timestamp>.json`` in ``directory``."""
    check = validate_canvas_state(list(elements), canvas_size)
    if not check.is_valid:
        logger.warning("Refusing to export invalid canvas: %s", check.error)
        return OperationResult.failure(check.error)

    data = create_export_data(elements, canvas_size, project_name)
    target_dir = Path(directory or settings.export_dir)
    path = target_dir / f"{_file_stem(project_name)}-{data.timestamp}.json"
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize_export_data(data), encoding="utf-8")
    except OSError as e:
        logger.error("Error exporting project to %s: %s", path, e)
        return OperationResult.failure(f"Could not write export file: {e}")

    logger.info("Exported %d elements to %s", len(elements), path)
    return OperationResult.success(path)


def _format_loc(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def decode_export_document(text: str | bytes) -> ExportData | DecodeError:
    """Parse and validate an untrusted export document."""
    parsed = safe_json_parse(text)
    if parsed.error:
        return DecodeError(parsed.error)

    check = validate_export_data(parsed.data)
    if not check.is_valid:
        return DecodeError(check.error, path=check.path)

    try:
        return ExportData.model_validate_json(text, strict=True)
    except ValidationError as e:
        first = e.errors()[0]
        return DecodeError(first["msg"], path=_format_loc(first["loc"]))


def import_project_from_json(text: str | bytes) -> ExportData | None:
    """Decode an export document, or None if it is rejected."""
    result = decode_export_document(text)
    if isinstance(result, DecodeError):
        logger.warning("Rejected imported project: %s", result)
        return None

    logger.info("Imported project with %d elements", len(result.elements))
    return result


async def import_project_from_file(path: str | Path) -> ExportData | None:
    """Read an export file off the event loop and decode it."""
    loop = asyncio.get_running_loop()
    try:
        text = await loop.run_in_executor(None, Path(path).read_bytes)
    except OSError as e:
        logger.error("Error reading import file %s: %s", path, e)
        return None
    return import_project_from_json(text)


@dataclass
class ProjectStatistics:
    """Aggregate figures for a set of elements."""

    total: int = 0
    plants: int = 0
    terrain: int = 0
    structures: int = 0
    shapes: int = 0
    selected: int = 0
    total_area: float = 0.0  # m², terrain only
    average_spacing: float = 0.0  # meters


def parse_spacing_meters(spacing: str) -> float | None:
    """Mean planting distance in meters for a spacing string, or None."""
    match = SPACING_PATTERN.fullmatch(spacing)
    if match is None:
        return None
    first, second, unit = match.groups()
    width = float(first)
    height = float(second) if second is not None else width
    scale = 0.01 if unit == "cm" else 1.0
    return (width + height) / 2 * scale


def calculate_project_statistics(
    elements: Sequence[DrawingElement | ExportElement],
) -> ProjectStatistics:
    """Counts per category, terrain area and average plant spacing."""
    counts = count_categories(elements)
    stats = ProjectStatistics(
        total=len(elements),
        plants=counts.plants,
        terrain=counts.terrain,
        structures=counts.structures,
        shapes=counts.shapes,
    )

    spacings = []
    for element in elements:
        if getattr(element, "selected", None):
            stats.selected += 1

        if (
            element.type == "terrain"
            and element.real_world_width is not None
            and element.real_world_height is not None
        ):
            stats.total_area += element.real_world_width * element.real_world_height

        if element.plant is not None:
            spacing = parse_spacing_meters(element.plant.spacing)
            if spacing is not None:
                spacings.append(spacing)

    if spacings:
        stats.average_spacing = sum(spacings) / len(spacings)
    return stats


def generate_project_summary(data: ExportData) -> str:
    """Human-readable (pt-BR) summary of an export document."""
    info = data.project_info
    categories = info.categories
    return "\n".join(
        [
            f"Projeto: {info.name or ''}",
            f"Descrição: {info.description or ''}",
            f"Tamanho: {info.canvas_size.width:g}x{info.canvas_size.height:g}m",
            f"Total de Elementos: {info.total_elements}",
            "",
            "Distribuição:",
            f"- Plantas: {categories.plants}",
            f"- Terrenos: {categories.terrain}",
            f"- Estruturas: {categories.structures}",
            f"- Formas: {categories.shapes}",
            "",
            f"Exportado em: {data.metadata.export_date}",
            f"Versão: {data.version}",
        ]
    )


def export_project_file(
    project: ProjectData, directory: str | Path | None = None, *, now: datetime | None = None
) -> OperationResult[Path]:
    """Write a full project backup (not the portable export format)."""
    now = now or datetime.now(UTC)
    document = {
        **project.to_wire(),
        "exportedAt": utc_now_iso(now),
        "exportedBy": settings.exported_by,
    }
    target_dir = Path(directory or settings.export_dir)
    path = target_dir / f"{DEFAULT_FILE_STEM}-{_epoch_ms(now)}.json"
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.error("Error writing project backup to %s: %s", path, e)
        return OperationResult.failure(f"Could not write project file: {e}")
    return OperationResult.success(path)


def import_project_file_text(text: str | bytes) -> ProjectData | None:
    """Load a project backup, restamping it as a new session."""
    parsed = safe_json_parse(text)
    if parsed.error:
        logger.warning("Rejected project file: %s", parsed.error)
        return None

    check = validate_project_data(parsed.data)
    if not check.is_valid:
        logger.warning("Rejected project file: %s", check.error)
        return None

    try:
        project = ProjectData.model_validate(parsed.data)
    except ValidationError as e:
        logger.warning("Rejected project file: %s", e)
        return None

    now = datetime.now(UTC)
    project.timestamp = _epoch_ms(now)
    project.last_modified = utc_now_iso(now)
    return project

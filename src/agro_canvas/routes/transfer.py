"""Export, import and statistics endpoints."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import Field

from agro_canvas.results import DecodeError
from agro_canvas.schemas import CanvasSize, DrawingElement, ExportData
from agro_canvas.schemas.base import CamelModel
from agro_canvas.transfer import (
    calculate_project_statistics,
    create_export_data,
    decode_export_document,
)
from agro_canvas.validation import validate_canvas_state

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transfer"])


class ExportRequest(CamelModel):
    """Request model for building an export document."""

    elements: list[DrawingElement] = Field(default_factory=list)
    canvas_size: CanvasSize
    name: str | None = Field(default=None, max_length=100)


@router.post("/export", response_model=ExportData, response_model_exclude_none=True)
def export_project(request: ExportRequest) -> ExportData:
    """
    Build the portable export document for a canvas.

    Returns 422 if the canvas or any element fails validation.
    """
    check = validate_canvas_state(request.elements, request.canvas_size)
    if not check.is_valid:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=check.error,
        )
    return create_export_data(request.elements, request.canvas_size, request.name)


@router.post("/import", response_model=ExportData, response_model_exclude_none=True)
async def import_project(request: Request) -> ExportData:
    """
    Validate an uploaded export document (raw JSON body).

    Returns 422 naming the offending path if the document is rejected.
    """
    body = await request.body()
    result = decode_export_document(body)
    if isinstance(result, DecodeError):
        logger.warning("Rejected import: %s", result)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": result.message, "path": result.path},
        )
    return result


@router.post("/statistics")
def project_statistics(elements: list[DrawingElement]) -> dict:
    """Aggregate counts, terrain area and average plant spacing."""
    return asdict(calculate_project_statistics(elements))

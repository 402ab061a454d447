"""Current project and project history endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from agro_canvas.dependencies import get_store
from agro_canvas.repositories import ProjectStore
from agro_canvas.schemas import ProjectData, ProjectHistoryEntry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/project", tags=["project"])


@router.get("/current", response_model=ProjectData, response_model_exclude_none=True)
def get_current_project(store: ProjectStore = Depends(get_store)) -> ProjectData:
    """
    Get the current project.

    Returns 404 if no project is stored or the stored one is unreadable.
    """
    project = store.get_current_project()
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No current project",
        )
    return project


@router.put("/current", response_model=ProjectData, response_model_exclude_none=True)
def save_current_project(
    project: ProjectData, store: ProjectStore = Depends(get_store)
) -> ProjectData:
    """
    Save the current project.

    Returns 422 with the validation message if the project is rejected.
    """
    result = store.save_current_project(project)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=result.error,
        )
    return result.value


@router.get(
    "/history", response_model=list[ProjectHistoryEntry], response_model_exclude_none=True
)
def list_history(store: ProjectStore = Depends(get_store)) -> list[ProjectHistoryEntry]:
    """List saved project summaries, newest first."""
    return store.get_project_history()


@router.get(
    "/history/{project_id}", response_model=ProjectData, response_model_exclude_none=True
)
def load_from_history(project_id: str, store: ProjectStore = Depends(get_store)) -> ProjectData:
    """
    Reopen a project from history.

    Only the current project can be reopened; other entries return 404.
    """
    project = store.load_project_from_history(project_id)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found in history",
        )
    return project


@router.delete("/history/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_from_history(project_id: str, store: ProjectStore = Depends(get_store)) -> None:
    """Remove a history entry. Returns 404 if no entry has that id."""
    result = store.delete_project_from_history(project_id)
    if not result.ok:
        logger.warning("History delete failed: project_id=%s (%s)", project_id, result.error)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=result.error,
        )

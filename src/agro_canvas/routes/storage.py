"""Storage maintenance endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from agro_canvas.dependencies import get_store
from agro_canvas.repositories import ProjectStore

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("")
def get_storage_info(store: ProjectStore = Depends(get_store)) -> dict:
    """Bytes used by stored project data against the quota."""
    info = store.get_storage_info()
    return {
        **asdict(info),
        "lastSave": store.get_last_save_time(),
    }


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_storage(store: ProjectStore = Depends(get_store)) -> None:
    """Remove the current project, history and preferences."""
    result = store.clear_all_data()
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=result.error,
        )

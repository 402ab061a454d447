"""User preference endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from agro_canvas.dependencies import get_store
from agro_canvas.repositories import ProjectStore
from agro_canvas.schemas import UserPreferences

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", response_model=UserPreferences)
def get_preferences(store: ProjectStore = Depends(get_store)) -> UserPreferences:
    """Get the effective user preferences (defaults fill any gaps)."""
    return store.get_user_preferences()


@router.patch("", response_model=UserPreferences)
def update_preferences(
    updates: dict[str, Any] = Body(...),
    store: ProjectStore = Depends(get_store),
) -> UserPreferences:
    """Merge the given keys over the current preferences."""
    result = store.save_user_preferences(updates)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=result.error,
        )
    return result.value

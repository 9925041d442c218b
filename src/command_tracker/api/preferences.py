"""Read and update the persisted tracker preferences."""

import logging

from fastapi import APIRouter, HTTPException, Request

from ..preferences import TrackerPreferences

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/preferences", response_model=TrackerPreferences)
async def get_preferences(request: Request):
    return request.app.state.preferences.current


@router.put("/preferences", response_model=TrackerPreferences)
async def update_preferences(body: TrackerPreferences, request: Request):
    try:
        return request.app.state.preferences.save(body)
    except OSError as e:
        logger.error("Failed to save preferences: %s", e)
        raise HTTPException(status_code=500, detail="Failed to save preferences")

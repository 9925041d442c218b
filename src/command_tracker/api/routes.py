"""Main API routes for Command Tracker."""

from fastapi import APIRouter

from .invocations import router as invocations_router
from .preferences import router as preferences_router
from .records import router as records_router

# Main API router
router = APIRouter()

# Include sub-routers
router.include_router(invocations_router, tags=["invocations"])
router.include_router(records_router, tags=["records"])
router.include_router(preferences_router, tags=["preferences"])

"""Display and settings endpoints over the record store."""

import logging

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from ..database.store import clear_all_records, get_all_records
from ..exceptions import StoreError
from ..tracking.projections import build_projection
from .schemas import (
    ClearRecordsResponse,
    ProjectionRequest,
    ProjectionResponse,
    RecordListResponse,
    record_to_item,
    row_to_item,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _unavailable(action: str, error: Exception) -> HTTPException:
    logger.warning("Failed to %s: %s", action, error)
    return HTTPException(status_code=503, detail=f"Failed to {action}. Please try again later.")


@router.get("/records", response_model=RecordListResponse)
async def list_records(request: Request):
    """All stored records, oldest first."""
    try:
        records = await get_all_records(request.app.state.store)
    except (StoreError, SQLAlchemyError) as e:
        raise _unavailable("load records", e)

    return RecordListResponse(
        items=[record_to_item(r) for r in records],
        total=len(records),
    )


@router.delete("/records", response_model=ClearRecordsResponse)
async def clear_records(request: Request):
    """Delete all data."""
    try:
        deleted = await clear_all_records(request.app.state.store)
    except (StoreError, SQLAlchemyError) as e:
        raise _unavailable("delete records", e)

    return ClearRecordsResponse(deleted=deleted)


@router.post("/projections", response_model=ProjectionResponse)
async def project_records(body: ProjectionRequest, request: Request):
    """Build display rows for the given command catalogue.

    View kind and date format default to the saved preferences.
    """
    preferences = request.app.state.preferences.current
    view_kind = body.view_kind or preferences.view_kind
    date_format = body.date_format or preferences.date_format

    try:
        records = await get_all_records(request.app.state.store)
    except (StoreError, SQLAlchemyError) as e:
        raise _unavailable("load records", e)

    rows = build_projection(
        view_kind,
        [item.to_descriptor() for item in body.catalogue],
        records,
    )
    return ProjectionResponse(
        view_kind=view_kind,
        view_label=view_kind.label,
        date_heading=view_kind.date_heading,
        date_format=date_format,
        rows=[row_to_item(row, date_format) for row in rows],
    )

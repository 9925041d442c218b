"""Host callback endpoint: one request per command invocation."""

from fastapi import APIRouter, Request

from .schemas import InvocationRequest

router = APIRouter()


@router.post("/invocations", status_code=202)
async def record_invocation(body: InvocationRequest, request: Request):
    """Record an invocation.

    Always accepted: storage failures are logged, never returned, so the
    host can fire and forget.
    """
    engine = request.app.state.ingestion_engine
    await engine.on_invocation(body.command_id, body.channel)
    return {"status": "accepted"}

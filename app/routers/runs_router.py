# /app/routers/runs_router.py

"""
Endpoints for the run engine: start a batch, abort it, and observe its
slots either by polling `/current` or by subscribing to `/current/events`.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from ..core.errors import PersistenceError
from ..models import run_model
from ..models.workbench_model import build_messages
from ..services import settings_service
from ..services.database_service import DatabaseService, get_db_service
from ..services.run_service import BatchOrchestrator, get_orchestrator, stream_snapshots

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",  # Maps to /api/runs
    response_model=run_model.RunSnapshot,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a Batch",
    responses={409: {"description": "A batch is already running"}, 422: {"description": "Both prompts are empty"}},
)
async def start_run(
    request: run_model.RunRequest,
    db: DatabaseService = Depends(get_db_service),
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    if not request.systemPrompt.strip() and not request.userPrompt.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="A system prompt or a user prompt is required.",
        )
    if orchestrator.is_running:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A batch is already running.")

    try:
        credential = settings_service.resolve_credential(db, request.apiKey)
    except PersistenceError as e:
        # The slots will report the missing key themselves.
        logger.warning("Stored API key unavailable: %s", e)
        credential = request.apiKey

    batch = orchestrator.start(request.systemPrompt, request.userPrompt, request.config, credential)
    if batch is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="The batch could not be started.")
    return orchestrator.snapshot()


@router.post("/abort", response_model=run_model.AbortResponse, summary="Abort the Running Batch")
async def abort_run(orchestrator: BatchOrchestrator = Depends(get_orchestrator)):
    return run_model.AbortResponse(aborted=orchestrator.abort())


@router.get("/current", response_model=run_model.RunSnapshot, summary="Get the Current Batch")
async def get_current_run(orchestrator: BatchOrchestrator = Depends(get_orchestrator)):
    snapshot = orchestrator.snapshot()
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No batch has been started yet.")
    return snapshot


@router.get("/current/events", summary="Stream the Current Batch", response_class=StreamingResponse)
async def stream_current_run(orchestrator: BatchOrchestrator = Depends(get_orchestrator)):
    """Server-sent events: one `data:` frame per change, closing after finalization."""
    if orchestrator.batch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No batch has been started yet.")

    async def event_source():
        async for snapshot in stream_snapshots(orchestrator):
            yield f"data: {snapshot.model_dump_json(by_alias=True)}\n\n"
        yield "data: [DONE]\n\n"

    return StreamingResponse(event_source(), media_type="text/event-stream")


@router.post("/payload", response_model=run_model.PayloadPreview, summary="Preview the Request Messages")
def preview_payload(request: run_model.PayloadRequest):
    """Returns the exact message list each slot of a batch would send."""
    return run_model.PayloadPreview(messages=build_messages(request.systemPrompt, request.userPrompt))

"""
Generation round endpoints.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from ...logging import get_logger
from ...orchestrator import FanOutOrchestrator
from ..broadcast import StateBroadcaster, StreamEvent

logger = get_logger(__name__)

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


class StartRoundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(min_length=1)
    providers: list[str]
    provider_to_model: dict[str, str | None] = Field(default_factory=dict, alias="providerToModel")


def _orchestrator(request: Request) -> FanOutOrchestrator:
    return request.app.state.orchestrator


@router.post("")
async def start_round(
    body: StartRoundRequest,
    request: Request,
    wait: bool = Query(False, description="Wait until every provider has settled"),
):
    """Start a generation round across the selected providers."""
    orchestrator = _orchestrator(request)
    try:
        task = orchestrator.start_generation(body.prompt, body.providers, body.provider_to_model)
    except ValueError as e:
        logger.warning("Rejected generation round", error=str(e), providers=body.providers)
        raise HTTPException(status_code=400, detail=str(e)) from e

    # Keep a reference so the join is not garbage collected
    request.app.state.current_round = task

    if wait:
        state = await task
        return JSONResponse(state.model_dump(mode="json"), status_code=200)
    return JSONResponse(orchestrator.snapshot().model_dump(mode="json"), status_code=202)


@router.get("")
async def get_round(request: Request):
    """Current aggregate state of the latest round."""
    return _orchestrator(request).snapshot().model_dump(mode="json")


@router.delete("")
async def reset_round(request: Request):
    """Reset all round state."""
    orchestrator = _orchestrator(request)
    orchestrator.reset_state()
    return orchestrator.snapshot().model_dump(mode="json")


@router.get("/stream")
async def stream_round(request: Request):
    """Server-sent events: one ``state`` event per change, ``refresh`` after each success.

    The stream closes once the round is no longer loading.
    """
    orchestrator = _orchestrator(request)
    broadcaster: StateBroadcaster = request.app.state.broadcaster

    async def event_stream():
        queue = broadcaster.subscribe()
        try:
            state = orchestrator.snapshot()
            yield StreamEvent("state", state).encode()
            if not state.is_loading:
                return

            while True:
                if await request.is_disconnected():
                    logger.info("Client disconnected from round stream")
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except TimeoutError:
                    yield ": keepalive\n\n"
                    continue

                yield event.encode()
                if event.event == "state" and event.state is not None and not event.state.is_loading:
                    break
        finally:
            broadcaster.unsubscribe(queue)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )

import asyncio
import logging
from collections import defaultdict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from openai import AsyncOpenAI
from pydantic import ValidationError

from buildr.dependencies import get_openai_client
from buildr.pipeline.generator import (
    instant_events,
    open_stream,
    plan_generation,
    relay_stream,
    try_instant_response,
)
from buildr.schemas.generate import GenerateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])

# One generation at a time per project
_project_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
CODE_REQUEST_TYPES = ("build", "edit")


@router.post("/generate")
async def generate(request: Request, client: AsyncOpenAI = Depends(get_openai_client)):
    try:
        data = GenerateRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning("Rejected generate request: %s", e)
        return JSONResponse({"error": "Invalid request"}, status_code=400)

    instant = try_instant_response(data)
    if instant:
        code, summary = instant
        logger.info("Applied instant edit: %s", summary)
        return StreamingResponse(instant_events(code, summary), media_type="text/event-stream", headers=SSE_HEADERS)

    plan = plan_generation(data)
    # The lock covers the model call itself, not just the relay
    lock = _project_locks[data.project_id] if data.project_id else None
    if lock:
        await lock.acquire()
    try:
        stream = await open_stream(client, plan)
    except Exception:
        if lock:
            lock.release()
        logger.exception("Failed to start %s generation", plan.request_type)
        return JSONResponse({"error": "Something went wrong"}, status_code=500)

    async def event_stream():
        try:
            async for event in relay_stream(stream, emit_code=plan.request_type in CODE_REQUEST_TYPES):
                yield event
        finally:
            if lock:
                lock.release()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)

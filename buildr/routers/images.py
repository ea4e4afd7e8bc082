import logging
from typing import Literal

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from buildr.dependencies import get_http_client
from buildr.schemas.images import (
    ImageBatchRequest,
    ImageBatchResponse,
    ImageSearchResponse,
    VideoSearchResponse,
)
from buildr.services import image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["images"])

MAX_COUNT = 30


def _missing_query() -> JSONResponse:
    return JSONResponse({"error": "Query parameter required"}, status_code=400)


@router.get("/unsplash", response_model=ImageSearchResponse)
async def unsplash(
    query: str | None = None,
    count: int = Query(5, ge=1, le=MAX_COUNT),
    orientation: str = "landscape",
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not query:
        return _missing_query()
    photos, source = await image_service.search_unsplash(client, query, count, orientation)
    return ImageSearchResponse(photos=photos, source=source)


@router.post("/unsplash", response_model=ImageBatchResponse)
async def unsplash_batch(request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    try:
        data = ImageBatchRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning("Rejected image batch request: %s", e)
        return JSONResponse({"error": "Queries array required"}, status_code=400)
    results, source = await image_service.search_unsplash_batch(client, data.queries)
    return ImageBatchResponse(results=results, source=source)


@router.get("/pexels", response_model=ImageSearchResponse | VideoSearchResponse)
async def pexels(
    query: str | None = None,
    type: Literal["photos", "videos"] = "photos",
    count: int = Query(5, ge=1, le=MAX_COUNT),
    orientation: str = "landscape",
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not query:
        return _missing_query()
    if type == "videos":
        videos, source = await image_service.search_pexels_videos(client, query, count, orientation)
        return VideoSearchResponse(videos=videos, source=source)
    photos, source = await image_service.search_pexels(client, query, count, orientation)
    return ImageSearchResponse(photos=photos, source=source)

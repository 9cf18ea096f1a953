from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger

from omnifeed.core.errors import QueryErrorKind, StorageError
from omnifeed.core.result import Err
from omnifeed.services.query import FeedQueryService, parse_cursor

router = APIRouter(prefix="/api", tags=["rss"])

INTERNAL_ERROR = {"error": "Internal Server Error"}

def get_query_service(request: Request) -> FeedQueryService:
    return request.app.state.query_service

@router.get("/rss")
async def get_rss(
    request: Request,
    url: list[str] = Query(default=[]),
    last_published: Optional[str] = Query(default=None, alias="lastPublished"),
    last_id: Optional[str] = Query(default=None, alias="lastId"),
):
    if (last_published is None) != (last_id is None):
        return JSONResponse(status_code=400, content={"error": "Invalid cursor"})
    cursor = f"{last_published}|{last_id}" if last_published is not None else None

    try:
        result = await get_query_service(request).get_page(url, cursor)
    except StorageError as e:
        # handled here; the app-level Exception handler runs outside CORS
        logger.opt(exception=e).error("GET /api/rss failed: storage error")
        return JSONResponse(status_code=500, content=INTERNAL_ERROR)
    if isinstance(result, Err):
        err = result.error
        if err.kind == QueryErrorKind.MISSING_URL:
            return JSONResponse(status_code=400, content={"error": err.message})
        if err.kind == QueryErrorKind.INVALID_CURSOR:
            return JSONResponse(status_code=400, content={"error": "Invalid cursor"})
        return JSONResponse(status_code=500, content={**INTERNAL_ERROR, "errorUrls": err.failed_urls})

    page = result.value
    body = {"items": [item.to_wire() for item in page.items]}
    if page.cursor is not None:
        next_published, next_id = parse_cursor(page.cursor)
        body["nextLastPublished"] = next_published
        body["nextLastId"] = next_id
    return body

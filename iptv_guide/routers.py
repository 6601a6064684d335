from datetime import datetime, timezone
from typing import Annotated, Literal
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import APIRouter, Depends, Query
import logging

from iptv_guide.config import settings
from iptv_guide.database import get_db
from iptv_guide.schemas import (
    BulkItemsRequest,
    GuideResponse,
    ItemRequest,
    PlaylistResponse,
    ProgrammeResponse,
    ScheduleRequest,
    ScheduleResponse,
    SourceRequest,
    StoredItemResponse,
)
from iptv_guide.services import (
    fetch_and_parse_guide,
    fetch_and_parse_playlist,
    parse_guide,
    parse_playlist_async,
    resolve_schedule,
)
from iptv_guide.services import preferences_service
from iptv_guide.services.guide_types import GuideResult, PlaylistResult, Programme
from iptv_guide.services.preferences_service import ItemRef
from iptv_guide.utils.timezone import convert_to_timezone, parse_iso8601_to_utc


logger = logging.getLogger(__name__)

main_router = APIRouter()
favorites_router = APIRouter(prefix="/api/favorites", tags=["favorites"])
hidden_router = APIRouter(prefix="/api/hidden", tags=["hidden"])

DbSession = Annotated[AsyncSession, Depends(get_db)]
ItemTypeQuery = Annotated[Literal["channel", "group"], Query()]


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    return {
        "service": "IPTV Guide Service",
        "version": "0.1.0",
        "endpoints": {
            "playlist": "/api/playlist - Parse an M3U playlist (POST)",
            "guide": "/api/guide - Parse an XMLTV guide (POST)",
            "schedule": "/api/guide/schedule - Current and upcoming programmes for a channel (POST)",
            "favorites": "/api/favorites - Manage favorite channels and groups",
            "hidden": "/api/hidden - Manage hidden channels and groups",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    return {"status": "ok"}


async def _load_playlist(request: SourceRequest) -> PlaylistResult:
    if request.url is not None:
        return await fetch_and_parse_playlist(request.url, timeout=settings.fetch_timeout)
    return await parse_playlist_async(request.content or "")


async def _load_guide(request: SourceRequest) -> GuideResult:
    if request.url is not None:
        return await fetch_and_parse_guide(
            request.url,
            timeout=settings.fetch_timeout,
            date_fallback=settings.guide_date_fallback,
        )
    return await parse_guide(request.content or "", date_fallback=settings.guide_date_fallback)


@main_router.post("/api/playlist", response_model=PlaylistResponse)
async def parse_playlist_source(request: SourceRequest) -> PlaylistResponse:
    """
    Parse an M3U playlist given inline or by URL

    Returns:
        Channels with stable ids and the groups they belong to
    """
    result = await _load_playlist(request)
    return PlaylistResponse.model_validate(result)


@main_router.post("/api/guide", response_model=GuideResponse)
async def parse_guide_source(request: SourceRequest) -> GuideResponse:
    """
    Parse an XMLTV guide given inline or by URL

    Returns:
        Guide channels and programmes with UTC timestamps
    """
    result = await _load_guide(request)
    return GuideResponse.model_validate(result)


@main_router.post("/api/guide/schedule", response_model=ScheduleResponse)
async def get_schedule(request: ScheduleRequest) -> ScheduleResponse:
    """
    Get the programme airing now and the next ones for a guide channel

    Args:
        request: Guide source, channel id, optional reference time, count and timezone

    Returns:
        Current/upcoming window with timestamps in the requested timezone
    """
    guide = await _load_guide(request)
    reference_time = parse_iso8601_to_utc(request.at) if request.at else datetime.now(timezone.utc)
    count = request.count if request.count is not None else settings.schedule_upcoming_count

    window = resolve_schedule(guide.programmes, request.channel_id, reference_time, count)
    logger.info(
        f"Schedule for {request.channel_id}: "
        f"{'1 current' if window.current else 'no current'} programme, {len(window.upcoming)} upcoming"
    )

    return ScheduleResponse(
        channel_id=request.channel_id,
        reference_time=convert_to_timezone(reference_time, request.timezone),
        timezone=request.timezone,
        current=_programme_in_timezone(window.current, request.timezone) if window.current else None,
        upcoming=[_programme_in_timezone(p, request.timezone) for p in window.upcoming],
    )


def _programme_in_timezone(programme: Programme, timezone_str: str) -> ProgrammeResponse:
    response = ProgrammeResponse.model_validate(programme)
    return response.model_copy(update={
        "start": convert_to_timezone(response.start, timezone_str) if response.start else None,
        "stop": convert_to_timezone(response.stop, timezone_str) if response.stop else None,
    })


@favorites_router.get("", response_model=list[StoredItemResponse])
async def list_favorites(
    db: DbSession,
    source_id: str | None = None,
    item_type: Literal["channel", "group"] | None = None
) -> list[StoredItemResponse]:
    """List favorites, optionally filtered by source and item type"""
    favorites = await preferences_service.list_favorites(db, source_id, item_type)
    return [StoredItemResponse.model_validate(favorite) for favorite in favorites]


@favorites_router.post("")
async def add_favorite(item: ItemRequest, db: DbSession) -> dict:
    """Add a favorite channel or group"""
    await preferences_service.add_favorite(db, ItemRef(**item.model_dump()))
    return {"success": True}


@favorites_router.delete("")
async def remove_favorite(item: ItemRequest, db: DbSession) -> dict:
    """Remove a favorite channel or group"""
    await preferences_service.remove_favorite(db, ItemRef(**item.model_dump()))
    return {"success": True}


@favorites_router.get("/check")
async def check_favorite(
    db: DbSession,
    source_id: str,
    item_id: str,
    item_type: ItemTypeQuery = "channel"
) -> dict:
    """Check whether a channel or group is a favorite"""
    item = ItemRef(source_id=source_id, item_type=item_type, item_id=item_id)
    return {"is_favorite": await preferences_service.is_favorite(db, item)}


@hidden_router.get("", response_model=list[StoredItemResponse])
async def list_hidden_items(db: DbSession, source_id: str | None = None) -> list[StoredItemResponse]:
    """List hidden channels and groups"""
    items = await preferences_service.list_hidden_items(db, source_id)
    return [StoredItemResponse.model_validate(item) for item in items]


@hidden_router.post("/hide")
async def hide_item(item: ItemRequest, db: DbSession) -> dict:
    """Hide a channel or group"""
    await preferences_service.hide_item(db, ItemRef(**item.model_dump()))
    return {"success": True}


@hidden_router.post("/show")
async def show_item(item: ItemRequest, db: DbSession) -> dict:
    """Show (unhide) a channel or group"""
    await preferences_service.show_item(db, ItemRef(**item.model_dump()))
    return {"success": True}


@hidden_router.get("/check")
async def check_hidden(
    db: DbSession,
    source_id: str,
    item_id: str,
    item_type: ItemTypeQuery = "channel"
) -> dict:
    """Check whether a channel or group is hidden"""
    item = ItemRef(source_id=source_id, item_type=item_type, item_id=item_id)
    return {"hidden": await preferences_service.is_hidden(db, item)}


@hidden_router.post("/hide/bulk")
async def bulk_hide(request: BulkItemsRequest, db: DbSession) -> dict:
    """Hide several channels and groups at once"""
    count = await preferences_service.bulk_hide_items(
        db, [ItemRef(**item.model_dump()) for item in request.items]
    )
    return {"success": True, "count": count}


@hidden_router.post("/show/bulk")
async def bulk_show(request: BulkItemsRequest, db: DbSession) -> dict:
    """Show several channels and groups at once"""
    count = await preferences_service.bulk_show_items(
        db, [ItemRef(**item.model_dump()) for item in request.items]
    )
    return {"success": True, "count": count}

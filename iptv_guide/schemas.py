from datetime import datetime
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from iptv_guide.utils.timezone import parse_iso8601_to_utc, DateFormatError


class SourceRequest(BaseModel):
    """Playlist or guide source given inline or by URL"""
    content: str | None = Field(None, description="Raw source text")
    url: str | None = Field(None, description="HTTP/HTTPS URL to fetch the source from")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Only HTTP(S) sources can be fetched"""
        if v is not None and not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"Source URL must be HTTP/HTTPS: {v}")
        return v

    @model_validator(mode='after')
    def validate_single_source(self):
        """Exactly one of content and url must be given"""
        if (self.content is None) == (self.url is None):
            raise ValueError("Exactly one of 'content' or 'url' must be provided")
        return self


class ScheduleRequest(SourceRequest):
    """Current/upcoming programmes request for one guide channel"""
    channel_id: str = Field(..., min_length=1, description="Guide channel id")
    at: str | None = Field(None, description="ISO8601 reference time (defaults to now)")
    count: int | None = Field(None, ge=0, description="Number of upcoming programmes")
    timezone: str = Field(default="UTC", description="Timezone for response timestamps (e.g., 'UTC', 'Europe/London')")

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone string"""
        if v == "UTC":
            return v
        try:
            ZoneInfo(v)
            return v
        except (KeyError, ValueError):
            raise ValueError(f"Invalid timezone: {v}. Must be a valid IANA timezone (e.g., 'Europe/London', 'America/New_York') or 'UTC'")

    @field_validator('at')
    @classmethod
    def validate_reference_time(cls, v: str | None) -> str | None:
        """Validate ISO8601 datetime format using centralized parser"""
        if v is None:
            return v
        try:
            parse_iso8601_to_utc(v)
            return v
        except DateFormatError:
            raise ValueError(f"Invalid datetime format: {v}. Must be valid ISO8601 format (e.g., '2025-10-09T00:00:00Z')")


class ChannelResponse(BaseModel):
    """Playlist channel"""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Stable channel id (tvg-id or name/group hash)")
    name: str
    tvg_id: str | None = None
    tvg_name: str | None = None
    tvg_logo: str | None = None
    group_title: str
    url: str
    duration: float


class GroupResponse(BaseModel):
    """Playlist group"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    channel_count: int


class PlaylistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    channels: list[ChannelResponse]
    groups: list[GroupResponse]


class EPGChannelResponse(BaseModel):
    """Guide channel"""
    model_config = ConfigDict(from_attributes=True)

    id: str | None
    name: str | None = None
    icon: str | None = None
    url: str | None = None


class ProgrammeResponse(BaseModel):
    """Guide programme"""
    model_config = ConfigDict(from_attributes=True)

    channel_id: str | None
    start: datetime | None
    stop: datetime | None
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    category: list[str] = Field(default_factory=list)
    icon: str | None = None
    date: str | None = None
    episode_num: str | None = None


class GuideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    channels: list[EPGChannelResponse]
    programmes: list[ProgrammeResponse]


class ScheduleResponse(BaseModel):
    """Current/upcoming window with timestamps in the requested timezone"""
    channel_id: str
    reference_time: datetime
    timezone: str = Field(..., description="Timezone used for all timestamps in response")
    current: ProgrammeResponse | None
    upcoming: list[ProgrammeResponse]


class ItemRequest(BaseModel):
    """Favorite or hidden item key"""
    source_id: str = Field(..., min_length=1)
    item_type: Literal["channel", "group"] = "channel"
    item_id: str = Field(..., min_length=1)


class BulkItemsRequest(BaseModel):
    items: list[ItemRequest] = Field(..., min_length=1)


class StoredItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_id: str
    item_type: str
    item_id: str
    created_at: datetime | None = None


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'FETCH_FAILED', 'FORMAT_ERROR')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")

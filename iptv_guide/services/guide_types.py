"""
Shared dataclasses produced by the playlist parser, guide parser and schedule resolver.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


UNCATEGORIZED_GROUP = "Uncategorized"


@dataclass(frozen=True, slots=True)
class Channel:
    """Live-stream channel parsed from an M3U playlist."""
    id: str
    name: str
    url: str
    group_title: str = UNCATEGORIZED_GROUP
    tvg_id: str | None = None
    tvg_name: str | None = None
    tvg_logo: str | None = None
    duration: float = -1


@dataclass(frozen=True, slots=True)
class Group:
    """Playlist category with the number of channels assigned to it."""
    id: str
    name: str
    channel_count: int = 0


@dataclass(frozen=True, slots=True)
class EPGChannel:
    """Channel declared in an XMLTV guide."""
    id: str | None
    name: str | None = None
    icon: str | None = None
    url: str | None = None


@dataclass(frozen=True, slots=True)
class Programme:
    """Scheduled programme from an XMLTV guide; times are UTC."""
    channel_id: str | None
    start: datetime | None
    stop: datetime | None
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    category: list[str] = field(default_factory=list)
    icon: str | None = None
    date: str | None = None
    episode_num: str | None = None


@dataclass(frozen=True, slots=True)
class PlaylistResult:
    channels: list[Channel] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class GuideResult:
    channels: list[EPGChannel] = field(default_factory=list)
    programmes: list[Programme] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ScheduleWindow:
    """Programme airing at the reference instant plus the next ones."""
    current: Programme | None = None
    upcoming: list[Programme] = field(default_factory=list)


__all__ = [
    "UNCATEGORIZED_GROUP",
    "Channel",
    "Group",
    "EPGChannel",
    "Programme",
    "PlaylistResult",
    "GuideResult",
    "ScheduleWindow",
]

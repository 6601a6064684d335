"""
M3U Playlist Parser

Parses EXTM3U playlists into channels and groups. The line scan is a two-state
machine: a URL line only produces a channel while an #EXTINF entry is pending.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, cast

from iptv_guide.exceptions import FormatError
from iptv_guide.services.guide_types import (
    UNCATEGORIZED_GROUP,
    Channel,
    Group,
    PlaylistResult,
)
from iptv_guide.utils.stable_id import stable_channel_id

logger = logging.getLogger(__name__)

PLAYLIST_HEADER = "#EXTM3U"
ENTRY_INFO_PREFIX = "#EXTINF:"
GROUP_OVERRIDE_PREFIX = "#EXTGRP:"

_EXTINF_RE = re.compile(r"#EXTINF:(-?\d+\.?\d*)\s*(.*)")
_ATTRIBUTE_PATTERNS = {
    "tvg_id": re.compile(r'tvg-id="([^"]*)"', re.IGNORECASE),
    "tvg_name": re.compile(r'tvg-name="([^"]*)"', re.IGNORECASE),
    "tvg_logo": re.compile(r'tvg-logo="([^"]*)"', re.IGNORECASE),
    "group_title": re.compile(r'group-title="([^"]*)"', re.IGNORECASE),
}
_WHITESPACE_RE = re.compile(r"\s+")


class ScanState(Enum):
    AWAITING_ENTRY = "awaiting_entry"
    ENTRY_PENDING = "entry_pending"


class LineKind(Enum):
    ENTRY_INFO = "entry_info"
    GROUP_OVERRIDE = "group_override"
    STREAM_URL = "stream_url"
    IGNORED = "ignored"


@dataclass(slots=True)
class EntryDescriptor:
    """Metadata collected from an #EXTINF line, waiting for its stream URL."""
    duration: float = -1
    name: str = ""
    tvg_id: str | None = None
    tvg_name: str | None = None
    tvg_logo: str | None = None
    group_title: str | None = None


def classify_line(line: str) -> LineKind:
    """Classify a trimmed playlist line"""
    if line.startswith(ENTRY_INFO_PREFIX):
        return LineKind.ENTRY_INFO
    if line.startswith(GROUP_OVERRIDE_PREFIX):
        return LineKind.GROUP_OVERRIDE
    if line and not line.startswith("#"):
        return LineKind.STREAM_URL
    return LineKind.IGNORED


def parse_extinf(line: str) -> EntryDescriptor:
    """
    Parse an #EXTINF line into an entry descriptor

    Args:
        line: Line like '#EXTINF:-1 tvg-id="bbc1" group-title="News",BBC One'

    Returns:
        EntryDescriptor with duration, tvg attributes, group and display name
    """
    descriptor = EntryDescriptor()

    match = _EXTINF_RE.match(line)
    if not match:
        return descriptor

    descriptor.duration = float(match.group(1))
    rest = match.group(2)

    for attribute, pattern in _ATTRIBUTE_PATTERNS.items():
        attribute_match = pattern.search(rest)
        if attribute_match:
            setattr(descriptor, attribute, attribute_match.group(1))

    # Display name follows the last comma
    comma_index = rest.rfind(",")
    if comma_index != -1:
        descriptor.name = rest[comma_index + 1:].strip()
    else:
        descriptor.name = descriptor.tvg_name or rest.strip()

    if not descriptor.tvg_id and descriptor.name:
        descriptor.tvg_id = _WHITESPACE_RE.sub("_", descriptor.name.lower())

    return descriptor


class _PlaylistScanner:
    """Line-by-line scanner driven by an explicit (state, line kind) transition table."""

    def __init__(self) -> None:
        self.state = ScanState.AWAITING_ENTRY
        self.pending: EntryDescriptor | None = None
        self.current_group: str | None = None
        self.channels: list[Channel] = []
        self.dropped_urls = 0

    def feed(self, line: str) -> None:
        kind = classify_line(line)
        handler = _TRANSITIONS.get((self.state, kind))
        if handler is not None:
            self.state = handler(self, line)

    def _begin_entry(self, line: str) -> ScanState:
        self.pending = parse_extinf(line)
        if self.pending.group_title:
            self.current_group = self.pending.group_title
        return ScanState.ENTRY_PENDING

    def _override_group(self, line: str) -> ScanState:
        self.current_group = line[len(GROUP_OVERRIDE_PREFIX):].strip()
        if self.pending is not None:
            self.pending.group_title = self.current_group
        return self.state

    def _finish_entry(self, line: str) -> ScanState:
        descriptor = cast(EntryDescriptor, self.pending)

        group_title = descriptor.group_title or self.current_group or UNCATEGORIZED_GROUP
        channel_id = descriptor.tvg_id or stable_channel_id(descriptor.name, group_title)

        self.channels.append(Channel(
            id=channel_id,
            name=descriptor.name,
            url=line,
            group_title=group_title,
            tvg_id=descriptor.tvg_id,
            tvg_name=descriptor.tvg_name,
            tvg_logo=descriptor.tvg_logo,
            duration=descriptor.duration,
        ))
        self.pending = None
        return ScanState.AWAITING_ENTRY

    def _drop_orphan_url(self, line: str) -> ScanState:
        logger.debug(f"Dropping stream URL without #EXTINF entry: {line}")
        self.dropped_urls += 1
        return ScanState.AWAITING_ENTRY


_Transition = Callable[[_PlaylistScanner, str], ScanState]

_TRANSITIONS: dict[tuple[ScanState, LineKind], _Transition] = {
    (ScanState.AWAITING_ENTRY, LineKind.ENTRY_INFO): _PlaylistScanner._begin_entry,
    (ScanState.ENTRY_PENDING, LineKind.ENTRY_INFO): _PlaylistScanner._begin_entry,
    (ScanState.AWAITING_ENTRY, LineKind.GROUP_OVERRIDE): _PlaylistScanner._override_group,
    (ScanState.ENTRY_PENDING, LineKind.GROUP_OVERRIDE): _PlaylistScanner._override_group,
    (ScanState.AWAITING_ENTRY, LineKind.STREAM_URL): _PlaylistScanner._drop_orphan_url,
    (ScanState.ENTRY_PENDING, LineKind.STREAM_URL): _PlaylistScanner._finish_entry,
}


def parse_playlist(content: str) -> PlaylistResult:
    """
    Parse M3U playlist content

    Args:
        content: Raw playlist text

    Returns:
        PlaylistResult with channels in file order and groups in first-seen order

    Raises:
        FormatError: If the first non-empty line is not the #EXTM3U header
    """
    lines = [line.strip() for line in content.lstrip("\ufeff").splitlines()]

    header_index = next((index for index, line in enumerate(lines) if line), None)
    if header_index is None or not lines[header_index].startswith(PLAYLIST_HEADER):
        raise FormatError("Invalid M3U format: missing #EXTM3U header")

    scanner = _PlaylistScanner()
    for line in lines[header_index + 1:]:
        scanner.feed(line)

    if scanner.state is ScanState.ENTRY_PENDING:
        logger.debug("Playlist ended with an #EXTINF entry that has no stream URL")

    groups = _build_groups(scanner.channels)

    logger.info(
        "M3U parsing complete: %s channels, %s groups (%s orphan URLs dropped)",
        len(scanner.channels),
        len(groups),
        scanner.dropped_urls,
    )

    return PlaylistResult(channels=scanner.channels, groups=groups)


async def parse_playlist_async(content: str) -> PlaylistResult:
    """
    Parse M3U playlist content without blocking the event loop

    Parsing is offloaded to the default thread pool executor.

    Raises:
        FormatError: If the first non-empty line is not the #EXTM3U header
    """
    loop = asyncio.get_running_loop()
    logger.debug("Offloading M3U parsing to thread pool executor...")
    return await loop.run_in_executor(None, partial(parse_playlist, content))


def _build_groups(channels: list[Channel]) -> list[Group]:
    """Collect groups used by channels, preserving first-seen order"""
    counts: dict[str, int] = {}
    for channel in channels:
        counts[channel.group_title] = counts.get(channel.group_title, 0) + 1

    return [
        Group(id=f"group_{index}", name=name, channel_count=count)
        for index, (name, count) in enumerate(counts.items())
    ]

"""
Services package for the IPTV Guide Service

Function-level boundary used by the HTTP layer: playlist and guide parsing,
fetch-then-parse wrappers, schedule resolution, and preference storage.
"""
from iptv_guide.services.playlist_parser_service import parse_playlist, parse_playlist_async
from iptv_guide.services.guide_parser_service import parse_guide
from iptv_guide.services.source_fetch_service import (
    fetch_and_parse_playlist,
    fetch_and_parse_guide,
)
from iptv_guide.services.schedule_service import resolve_schedule

__all__ = [
    'parse_playlist',
    'parse_playlist_async',
    'parse_guide',
    'fetch_and_parse_playlist',
    'fetch_and_parse_guide',
    'resolve_schedule',
]

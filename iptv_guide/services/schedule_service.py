"""
Schedule Service

Answers "what is airing now / next" for one guide channel at a reference instant.
"""
from collections.abc import Sequence
from datetime import datetime, timezone
import logging

from iptv_guide.services.guide_types import Programme, ScheduleWindow
from iptv_guide.utils.timezone import ensure_utc

logger = logging.getLogger(__name__)

DEFAULT_UPCOMING_COUNT = 5


def get_programmes_for_channel(programmes: Sequence[Programme], channel_id: str) -> list[Programme]:
    """Return programmes whose channel_id matches exactly, in input order"""
    return [programme for programme in programmes if programme.channel_id == channel_id]


def get_current_and_upcoming(
    programmes: Sequence[Programme],
    channel_id: str,
    reference_time: datetime | None = None,
    count: int = DEFAULT_UPCOMING_COUNT
) -> ScheduleWindow:
    """
    Get current and upcoming programmes for a channel

    Args:
        programmes: Guide programmes (not modified)
        channel_id: Guide channel id to filter on
        reference_time: Instant to resolve against; defaults to now, naive values are UTC
        count: Maximum number of upcoming programmes

    Returns:
        ScheduleWindow with the programme covering reference_time (start <= t < stop)
        and up to `count` programmes starting strictly after it, ascending by start

    Raises:
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    now = ensure_utc(reference_time) if reference_time else datetime.now(timezone.utc)

    # Programmes without both bounds can be neither current nor upcoming
    channel_programmes = [
        programme for programme in get_programmes_for_channel(programmes, channel_id)
        if programme.start is not None and programme.stop is not None
    ]
    # sorted() is stable: equal starts keep input order
    channel_programmes = sorted(channel_programmes, key=lambda p: p.start)

    current = next(
        (p for p in channel_programmes if p.start <= now < p.stop),
        None
    )
    upcoming = [p for p in channel_programmes if p.start > now][:count]

    logger.debug(
        "Schedule for %s at %s: current=%s, %s upcoming",
        channel_id,
        now.isoformat(),
        current.title if current else None,
        len(upcoming),
    )

    return ScheduleWindow(current=current, upcoming=upcoming)


resolve_schedule = get_current_and_upcoming

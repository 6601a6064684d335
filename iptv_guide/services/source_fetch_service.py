"""
Source Fetch Service

Downloads playlist and guide sources with a single GET and hands the body to
the matching parser. There is no retry; callers needing a deadline pass
`timeout`, and callers needing retries wrap these functions.
"""
import logging

import httpx

from iptv_guide.exceptions import NetworkError
from iptv_guide.services.guide_parser_service import DateFallback, parse_guide
from iptv_guide.services.guide_types import GuideResult, PlaylistResult
from iptv_guide.services.playlist_parser_service import parse_playlist_async
from iptv_guide.utils.logging_helpers import (
    log_fetch_end,
    log_fetch_start,
    sanitize_url_for_logging,
)

logger = logging.getLogger(__name__)


async def fetch_source(
    url: str,
    *,
    kind: str = "source",
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None
) -> httpx.Response:
    """
    Perform one GET request for a source

    Args:
        url: Source URL
        kind: Source kind used in log and error messages
        timeout: HTTP timeout in seconds; None disables it for the temporary
            client and keeps the configured one for a shared client
        client: Optional shared client; a temporary one is created otherwise

    Returns:
        Successful httpx.Response

    Raises:
        NetworkError: On transport failure or a non-2xx status
    """
    log_fetch_start(logger, kind, url)

    try:
        if client is not None:
            request_options: dict = {"follow_redirects": True}
            if timeout is not None:
                request_options["timeout"] = timeout
            response = await client.get(url, **request_options)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await own_client.get(url)
    except httpx.TransportError as e:
        logger.error(f"Failed to fetch {kind} from {sanitize_url_for_logging(url)}: {type(e).__name__}")
        raise NetworkError(
            f"Failed to fetch {kind}: {type(e).__name__}: {e}",
            url=url,
        ) from e

    if not response.is_success:
        logger.error(
            f"Failed to fetch {kind} from {sanitize_url_for_logging(url)}: "
            f"HTTP {response.status_code} {response.reason_phrase}"
        )
        raise NetworkError(
            f"Failed to fetch {kind}: {response.status_code} {response.reason_phrase}",
            url=url,
            status_code=response.status_code,
            reason=response.reason_phrase,
        )

    log_fetch_end(logger, kind, url, len(response.content))
    return response


async def fetch_and_parse_playlist(
    url: str,
    *,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None
) -> PlaylistResult:
    """
    Fetch an M3U playlist and parse it

    Raises:
        NetworkError: If the download fails
        FormatError: If the body is not an M3U playlist
    """
    response = await fetch_source(url, kind="playlist", timeout=timeout, client=client)
    return await parse_playlist_async(response.text)


async def fetch_and_parse_guide(
    url: str,
    *,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
    date_fallback: DateFallback = "iso8601"
) -> GuideResult:
    """
    Fetch an XMLTV guide and parse it

    The raw bytes are parsed so the XML declaration decides the encoding.

    Raises:
        NetworkError: If the download fails
        FormatError: If the body is not an XMLTV document
    """
    response = await fetch_source(url, kind="guide", timeout=timeout, client=client)
    return await parse_guide(response.content, date_fallback=date_fallback)

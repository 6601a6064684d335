"""
Structured logging helpers for consistent log formatting.
"""
import logging


def sanitize_url_for_logging(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    if "://" not in url:
        return url
    try:
        protocol, rest = url.split("://", 1)
        if "@" in rest.split("/", 1)[0]:
            rest = rest.split("@", 1)[1]
            return f"{protocol}://***:***@{rest}"
        return url
    except (ValueError, IndexError):
        return url


def log_fetch_start(logger: logging.Logger, kind: str, url: str) -> None:
    """
    Log the start of a source download.

    Args:
        logger: Logger instance
        kind: Source kind ('playlist' or 'guide')
        url: Source URL (credentials are masked)
    """
    logger.info(f"Fetching {kind} from {sanitize_url_for_logging(url)}")


def log_fetch_end(logger: logging.Logger, kind: str, url: str, size_bytes: int) -> None:
    """
    Log a completed source download.

    Args:
        logger: Logger instance
        kind: Source kind ('playlist' or 'guide')
        url: Source URL (credentials are masked)
        size_bytes: Size of the downloaded body
    """
    logger.info(
        f"Fetched {kind} from {sanitize_url_for_logging(url)} ({size_bytes / 1024:.1f} KB)"
    )

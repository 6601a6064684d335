"""
Errors raised by the ingestion pipeline.

Only two conditions are fatal for a parse or fetch; every other kind of
malformed input degrades to empty or null fields.
"""


class FormatError(ValueError):
    """Raised when a playlist or guide is missing its required root marker"""
    pass


class NetworkError(RuntimeError):
    """Raised when fetching a source fails (transport error or non-2xx status)"""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        reason: str | None = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.reason = reason

"""Exceptions raised by the search core."""


class FlightSearchError(Exception):
    """Base error for search failures."""


class AuthExtractionError(FlightSearchError):
    """Session tokens could not be found in the landing page.

    Usually means the page layout changed or a consent / captcha page was
    served instead of the real one.
    """


class RemoteCallError(FlightSearchError):
    """An upstream call failed: non-success status, transport error or timeout."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyDecodeResult(FlightSearchError):
    """A response decoded to zero itineraries ("no results", not a fault)."""

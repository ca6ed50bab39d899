"""Exception hierarchy for oddmuse_sync.

All errors raised by the sync core inherit from ``OddmuseError`` so callers
can catch any package failure in one place.
"""


class OddmuseError(Exception):
    """Base exception for all oddmuse_sync errors."""


class RemoteError(OddmuseError):
    """Raised when the wiki answered but signalled a failure.

    Covers Oddmuse error pages, transport failures (curl status ``000``
    or a non-zero exit), and posts the server rejected.

    Attributes:
        message: Human-readable message, taken from the response if possible.
        raw: The raw response text, when it is useful for diagnosis.
    """

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.message = message
        self.raw = raw


class InvariantViolation(OddmuseError):
    """Raised when a sync transition is invoked out of order.

    For example, posting a page that was never loaded and therefore has
    no baseline revision.
    """


class NotFoundError(OddmuseError):
    """Base class for lookups that found nothing."""


class WikiNotFoundError(NotFoundError):
    """Raised when a wiki name is not registered."""

    def __init__(self, wiki: str):
        super().__init__(f"Wiki '{wiki}' is not configured")
        self.wiki = wiki


class PageNotFoundError(NotFoundError):
    """Raised when a page is absent from a wiki's loaded page index."""

    def __init__(self, wiki: str, page: str):
        super().__init__(f"Page '{page}' not found on wiki '{wiki}'")
        self.wiki = wiki
        self.page = page


class ParseAnomaly(OddmuseError):
    """Raised inside the feed parser for a record it cannot use.

    Never escapes ``parse_feed``: the offending record is skipped.
    """

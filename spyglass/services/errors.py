"""Exceptions raised by the discovery services.

Every discovery call either returns a complete result or raises one of
these. Callers decide whether to skip, log, or retry a site.
"""


class DiscoveryError(Exception):
    """Base exception for discovery errors."""

    pass


class FetchError(DiscoveryError):
    """Raised when a page cannot be retrieved (transport error or non-2xx status)."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


class NoCandidateError(DiscoveryError):
    """Raised when no form, input, or container passes the structural gate."""

    pass


class AmbiguousError(DiscoveryError):
    """Raised when several answers are equally plausible and none is picked."""

    def __init__(
        self,
        message: str,
        top_score: int | None = None,
        next_score: int | None = None,
    ):
        self.top_score = top_score
        self.next_score = next_score
        super().__init__(message)


class MalformedInputError(DiscoveryError):
    """Raised when a winning element lacks data needed to finish the result."""

    pass


class SkippedSiteError(DiscoveryError):
    """Raised when a site link matches a configured skip keyword."""

    pass


class CardSelectorNotFoundError(DiscoveryError):
    """Raised when both card discovery tiers fail."""

    def __init__(
        self,
        url: str,
        differential_error: DiscoveryError,
        frequency_error: DiscoveryError,
    ):
        self.url = url
        self.differential_error = differential_error
        self.frequency_error = frequency_error
        super().__init__(
            f"All card discovery tiers failed for {url}: "
            f"differential: {differential_error}; frequency: {frequency_error}"
        )

"""Error taxonomy for card rendering.

Every error is terminal for the request that raised it; nothing is retried.
"""

from typing import Optional


class ShareCardError(Exception):
    """Base class for all card rendering failures."""


class InvalidPayload(ShareCardError):
    """Payload tag does not match the painter, or a required field is missing."""


class UnknownCardType(ShareCardError):
    """Payload carries a card type no painter is registered for."""


class AssetIndexOutOfRange(ShareCardError):
    """Mascot index lies outside the available mascot set."""

    def __init__(self, index: int, available: int):
        self.index = index
        self.available = available
        super().__init__(f"Monster index {index} out of range 1..{available}")


class AssetFetchFailed(ShareCardError):
    """A required asset could not be fetched or decoded."""

    def __init__(self, url: str, reason: Optional[BaseException] = None):
        self.url = url
        self.reason = reason
        message = f"Failed to load asset {url}"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)


class SurfaceUnavailable(ShareCardError):
    """The drawing surface could not be allocated."""

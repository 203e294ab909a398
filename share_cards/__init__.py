"""Share card renderer: composites layered artwork and stats into 1080x1080 PNGs."""

from .card_renderer import CardRenderer, RenderedCard
from .errors import (
    AssetFetchFailed,
    AssetIndexOutOfRange,
    InvalidPayload,
    ShareCardError,
    SurfaceUnavailable,
    UnknownCardType,
)
from .payload import CardType, parse_payload

__all__ = [
    "AssetFetchFailed",
    "AssetIndexOutOfRange",
    "CardRenderer",
    "CardType",
    "InvalidPayload",
    "RenderedCard",
    "ShareCardError",
    "SurfaceUnavailable",
    "UnknownCardType",
    "parse_payload",
]

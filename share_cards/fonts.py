"""Font-face registration for card text.

Text styles reference fonts by family name. The files are fetched through the
asset source and registered on the canvas before the first text draw; drawing
with an unregistered family falls back to Pillow's bundled font.
"""

import asyncio
from io import BytesIO
from typing import Mapping

from PIL import ImageFont

from .errors import AssetFetchFailed
from .utils import get_logger

logger = get_logger(__name__)


class FontRegistry:
    """Family name -> font file bytes, with sized font instances built on demand."""

    def __init__(self):
        self._faces: dict[str, bytes] = {}
        self._fonts: dict[tuple[str, float], ImageFont.FreeTypeFont] = {}
        self._warned: set[str] = set()

    def register(self, family: str, data: bytes) -> None:
        """Register a font file under ``family``. Re-registering the same bytes is a no-op."""
        if self._faces.get(family) == data:
            return
        # Validate eagerly so a corrupt file fails at load time, not mid-draw
        ImageFont.truetype(BytesIO(data), 10)
        self._faces[family] = data
        self._fonts = {k: v for k, v in self._fonts.items() if k[0] != family}
        logger.debug(f"Registered font family {family!r} ({len(data)} bytes)")

    @property
    def families(self) -> list[str]:
        return sorted(self._faces)

    def get(self, family: str, size: float) -> ImageFont.FreeTypeFont:
        """Return ``family`` at ``size`` pixels."""
        key = (family, size)
        if key not in self._fonts:
            data = self._faces.get(family)
            if data is None:
                if family not in self._warned:
                    logger.warning(f"Font family {family!r} not registered, using default font")
                    self._warned.add(family)
                self._fonts[key] = ImageFont.load_default(size=size)
            else:
                self._fonts[key] = ImageFont.truetype(BytesIO(data), size)
        return self._fonts[key]


async def load_fonts(source, faces: Mapping[str, str], registry: FontRegistry) -> None:
    """Fetch every font face concurrently and register it by family name.

    Raises:
        AssetFetchFailed: a font file could not be fetched or parsed
    """
    families = list(faces)
    results = await asyncio.gather(
        *(source.fetch(faces[family]) for family in families),
        return_exceptions=True,
    )

    for family, result in zip(families, results):
        if isinstance(result, BaseException):
            raise AssetFetchFailed(faces[family], result) from result
        try:
            registry.register(family, result)
        except OSError as e:
            raise AssetFetchFailed(faces[family], e) from e

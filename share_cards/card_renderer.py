"""Card renderer: routes a request payload to its painter and encodes the result.

One request in, one encoded 1080x1080 image (or one exception) out.
"""

import asyncio
import base64
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from PIL import Image

from .assets import AssetPipeline, AssetSource, build_asset_source
from .canvas import CANVAS_HEIGHT, CANVAS_WIDTH, create_canvas
from .config import Settings, settings as default_settings
from .errors import ShareCardError, UnknownCardType
from .painters import CleanupPainter, Painter, ProfilePainter, RenderState, SharePainter
from .payload import CardType, card_type_of, parse_payload
from .utils import get_logger

logger = get_logger(__name__)

PAINTERS: dict[CardType, type[Painter]] = {
    CardType.PROFILE: ProfilePainter,
    CardType.SHARE: SharePainter,
    CardType.CLEANUP: CleanupPainter,
}


@dataclass
class RenderedCard:
    """An encoded card image."""

    card_type: CardType
    data: bytes
    media_type: str
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


class CardRenderer:
    """Renders share cards, one request per call."""

    def __init__(self, settings: Optional[Settings] = None, source: Optional[AssetSource] = None):
        self.settings = settings or default_settings
        self.source = source or build_asset_source(self.settings)

    def close(self) -> None:
        """Release the asset source (its HTTP session, if any)."""
        close = getattr(self.source, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "CardRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def painter_for(self, card_type: CardType) -> Painter:
        painter_cls = PAINTERS.get(card_type)
        if painter_cls is None:
            raise UnknownCardType(f"No painter registered for {card_type!r}")
        return painter_cls(AssetPipeline(self.source), self.settings.font_faces)

    async def render(self, payload: Union[Mapping[str, Any], Any]) -> RenderedCard:
        """Render ``payload`` into an encoded image.

        Raises:
            ShareCardError: a rejected request or a failed fetch
            Exception: drawing or encoding errors propagate unchanged

        No partial image is returned on failure.
        """
        started = time.perf_counter()
        try:
            payload = parse_payload(payload)
            card_type = card_type_of(payload)
            painter = self.painter_for(card_type)
        except ShareCardError as e:
            logger.error(f"Rejected render request: {e}")
            raise

        try:
            canvas = create_canvas(CANVAS_WIDTH, CANVAS_HEIGHT)
            await painter.render(canvas, payload)

            painter.transition(RenderState.ENCODING)
            fmt = self.settings.output_format.upper()
            data = await asyncio.to_thread(
                canvas.encode,
                fmt,
                self.settings.output_quality,
                self.settings.png_compress_level,
            )
        except Exception as e:
            if painter.state is not RenderState.FAILED:
                painter.transition(RenderState.FAILED)
            logger.error(f"Rendering {card_type.value} card failed: {e}")
            raise

        painter.transition(RenderState.DONE)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Rendered {card_type.value} card ({len(data)} bytes, {elapsed_ms:.0f} ms)")

        media_type = Image.MIME.get("JPEG" if fmt == "JPG" else fmt, "application/octet-stream")
        return RenderedCard(
            card_type=card_type,
            data=data,
            media_type=media_type,
            width=canvas.width,
            height=canvas.height,
        )

    def render_sync(self, payload: Union[Mapping[str, Any], Any]) -> RenderedCard:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.render(payload))

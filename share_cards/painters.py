"""Card painters: one visual template per card type.

Each painter declares its background layers back-to-front, composites them
onto the canvas, then draws the shared name/team chrome and its own stats.
Coordinates assume the 1080x1080 frame.
"""

import enum
from abc import ABC, abstractmethod
from typing import ClassVar, Mapping, Optional, Sequence

from .assets import AssetPipeline, DecodedImage, JoinStrategy, release_all
from .canvas import Canvas
from .errors import AssetIndexOutOfRange, InvalidPayload
from .fonts import load_fonts
from .payload import CardType, CleanupCardPayload, ProfileCardPayload, ShareCardPayload
from .text_layout import FontStyle, draw_text, draw_text_centered, draw_unit
from .utils import get_logger

logger = get_logger(__name__)

# Vertical distance between a label and its value
SPACING = 40

ASSETS = {
    "monster_background": "/img/monster-background.png",
    "share_background": "/img/share-background.png",
    "cleanup_background": "/img/cleanup-background.png",
    "chrome": "/img/chrome.png",
    "monsters": [
        "/img/social-share-monster-1.png",
        "/img/social-share-monster-2.png",
        "/img/social-share-monster-3.png",
        "/img/social-share-monster-4.png",
    ],
}

DEFAULT_FONT_FACES = {
    "Montserrat": "/fonts/Montserrat-Regular.ttf",
    "Bebas Neue": "/fonts/BebasNeue-Regular.ttf",
}


class RenderState(enum.Enum):
    CREATED = "created"
    FETCHING_ASSETS = "fetching_assets"
    COMPOSITING = "compositing"
    DRAWING_TEXT = "drawing_text"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


class Painter(ABC):
    """Base painter: layer fetch, compositing, font loading and chrome."""

    card_type: ClassVar[CardType]
    payload_type: ClassVar[type]
    join_strategy: ClassVar[JoinStrategy] = JoinStrategy.ALL

    def __init__(self, pipeline: AssetPipeline, font_faces: Optional[Mapping[str, str]] = None):
        self.pipeline = pipeline
        self.font_faces = dict(font_faces or DEFAULT_FONT_FACES)
        self.state = RenderState.CREATED

    def transition(self, state: RenderState) -> None:
        logger.debug(f"{self.card_type.value}: {self.state.value} -> {state.value}")
        self.state = state

    def check_payload(self, payload) -> None:
        if not isinstance(payload, self.payload_type):
            tag = getattr(payload, "type", type(payload).__name__)
            raise InvalidPayload(
                f"{type(self).__name__} cannot render a {tag!r} payload"
            )

    @abstractmethod
    def required_layers(self, payload) -> list[str]:
        """Asset URLs this card needs, in back-to-front paint order."""

    @abstractmethod
    def composite(self, canvas: Canvas, payload, layers: Sequence[DecodedImage]) -> None:
        """Draw the fetched layers, closing each right after it is drawn."""

    @abstractmethod
    def draw_stats(self, canvas: Canvas, payload) -> None:
        """Draw the template-specific statistic blocks."""

    async def load_fonts(self, canvas: Canvas) -> None:
        await load_fonts(self.pipeline.source, self.font_faces, canvas.fonts)

    async def render(self, canvas: Canvas, payload) -> None:
        """Paint ``payload`` onto ``canvas``. Nothing is drawn if validation fails."""
        try:
            self.check_payload(payload)
            urls = self.required_layers(payload)

            self.transition(RenderState.FETCHING_ASSETS)
            layers = await self.pipeline.fetch_layers(urls, self.join_strategy)

            self.transition(RenderState.COMPOSITING)
            with release_all(layers):
                self.composite(canvas, payload, layers)

            self.transition(RenderState.DRAWING_TEXT)
            # Text styles reference these families by name, so they must be loaded first
            await self.load_fonts(canvas)
            self.draw_chrome(canvas, payload)
            self.draw_stats(canvas, payload)
        except BaseException:
            self.transition(RenderState.FAILED)
            raise

    def draw_chrome(self, canvas: Canvas, payload) -> None:
        # NAME    TEAM
        # ___     ___
        profile = payload.profile
        x1, x2 = 383, 704
        y1 = 950
        y2 = y1 + SPACING

        draw_text(canvas, "NAME", x1, y1, FontStyle.LIGHT)
        draw_text(canvas, profile.name.upper(), x1, y2, FontStyle.BOLD, max_width=300)

        draw_text(canvas, "TEAM", x2, y1, FontStyle.LIGHT)
        draw_text(canvas, profile.team.upper(), x2, y2, FontStyle.BOLD, max_width=300)

    def draw_background(self, canvas: Canvas, layer: DecodedImage) -> None:
        """Stretch a layer over the whole canvas and release it."""
        canvas.draw_image(layer.image, 0, 0, canvas.width, canvas.height)
        layer.close()

    def draw_share_stats(self, canvas: Canvas, area: float, volume: float) -> None:
        x = 585
        y1, y2 = 566, 706

        draw_text(canvas, "GEREINIGTE FLÄCHE", x, y1, FontStyle.LIGHT)
        draw_unit(canvas, area, "m²", x, y1 + SPACING)

        draw_text(canvas, "GESAMMELTER MÜLL", x, y2, FontStyle.LIGHT)
        draw_unit(canvas, volume, "Liter", x, y2 + SPACING)


class ProfilePainter(Painter):
    card_type = CardType.PROFILE
    payload_type = ProfileCardPayload

    MONSTER_SCALE = 0.7
    MONSTER_TOP = 180

    def required_layers(self, payload: ProfileCardPayload) -> list[str]:
        self.check_payload(payload)
        monsters = ASSETS["monsters"]
        if not 1 <= payload.monster <= len(monsters):
            raise AssetIndexOutOfRange(payload.monster, len(monsters))
        return [ASSETS["monster_background"], monsters[payload.monster - 1], ASSETS["chrome"]]

    def composite(self, canvas: Canvas, payload, layers: Sequence[DecodedImage]) -> None:
        background, monster, border = layers

        self.draw_background(canvas, background)

        # center the monster horizontally at 70%
        width = monster.width * self.MONSTER_SCALE
        height = monster.height * self.MONSTER_SCALE
        left = (canvas.width - width) / 2
        canvas.draw_image(monster.image, left, self.MONSTER_TOP, width, height)
        monster.close()

        self.draw_background(canvas, border)

    def draw_stats(self, canvas: Canvas, payload: ProfileCardPayload) -> None:
        #          area
        #          ___
        #  LEVEL
        #  ___     volume
        #          ___
        x = 122
        draw_text(canvas, "LEVEL", x, 615, FontStyle.BIG)
        draw_text(canvas, str(payload.profile.level), x, 700, FontStyle.BIG)

        self.draw_share_stats(canvas, payload.share.area, payload.share.volume)


class SharePainter(Painter):
    card_type = CardType.SHARE
    payload_type = ShareCardPayload

    def required_layers(self, payload) -> list[str]:
        return [ASSETS["share_background"]]

    def composite(self, canvas: Canvas, payload, layers: Sequence[DecodedImage]) -> None:
        (background,) = layers
        self.draw_background(canvas, background)

    def draw_stats(self, canvas: Canvas, payload: ShareCardPayload) -> None:
        #              area
        #  MÜLL        ___
        #  ENTSORGT
        #              volume
        #              ___
        x = 111
        draw_text(canvas, "MÜLL", x, 634, FontStyle.BIG)
        draw_text(canvas, "ENTSORGT", x, 719, FontStyle.BIG)

        self.draw_share_stats(canvas, payload.share.area, payload.share.volume)


class CleanupPainter(Painter):
    card_type = CardType.CLEANUP
    payload_type = CleanupCardPayload

    CONTENT_MARGIN = 90

    def required_layers(self, payload) -> list[str]:
        return [ASSETS["cleanup_background"]]

    def composite(self, canvas: Canvas, payload, layers: Sequence[DecodedImage]) -> None:
        (background,) = layers
        self.draw_background(canvas, background)

    def draw_stats(self, canvas: Canvas, payload: CleanupCardPayload) -> None:
        #        TITLE
        #       _______
        #
        # volume         area
        # participants   impact
        cleanup = payload.cleanup
        x_min = self.CONTENT_MARGIN
        box_width = canvas.width - x_min * 2
        draw_text_centered(canvas, "ERFOLGREICHES CLEANUP", x_min, 390, FontStyle.LIGHT_BIG, box_width)
        draw_text_centered(canvas, cleanup.name.upper(), x_min, 444, FontStyle.BIG, box_width)

        x1, x2 = 152, 585
        y1, y2 = 590, 748

        draw_text(canvas, "MÜLLMENGE", x1, y1, FontStyle.LIGHT)
        draw_unit(canvas, cleanup.volume, "Liter", x1, y1 + SPACING)

        draw_text(canvas, "TEILNEHMENDE", x1, y2, FontStyle.LIGHT)
        draw_unit(canvas, cleanup.participants, "Grabits", x1, y2 + SPACING)

        draw_text(canvas, "GEREINIGTE FLÄCHE", x2, y1, FontStyle.LIGHT)
        draw_unit(canvas, cleanup.area, "m²", x2, y1 + SPACING)

        draw_text(canvas, "GESAMTER IMPACT", x2, y2, FontStyle.LIGHT)
        draw_unit(canvas, cleanup.impact, "Points", x2, y2 + SPACING)


async def draw_layer_stack(
    canvas: Canvas,
    pipeline: AssetPipeline,
    urls: Sequence[str],
) -> int:
    """Draw whichever of ``urls`` load, full-canvas, in request order.

    Degraded mode for composites where any subset of layers is still usable.
    Returns the number of layers drawn.
    """
    layers = await pipeline.fetch_layers(urls, JoinStrategy.BEST_EFFORT)
    with release_all(layers):
        for layer in layers:
            canvas.draw_image(layer.image, 0, 0, canvas.width, canvas.height)
            layer.close()
    return len(layers)

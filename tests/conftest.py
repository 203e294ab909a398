"""Shared fixtures: an in-memory asset origin with generated artwork and fonts."""

import asyncio
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import pytest
from PIL import Image, ImageDraw, ImageFont

from share_cards.canvas import Canvas
from share_cards.painters import ASSETS, DEFAULT_FONT_FACES

MONSTER_BACKGROUND = (200, 40, 40, 255)
SHARE_BACKGROUND = (40, 160, 60, 255)
CLEANUP_BACKGROUND = (30, 50, 170, 255)
CHROME_COLOR = (250, 200, 0, 255)
CHROME_BORDER = 20
MONSTER_SIZE = 400
MONSTER_COLORS = [
    (10, 200, 200, 255),
    (120, 0, 160, 255),
    (90, 90, 90, 255),
    (0, 0, 0, 255),
]


def make_png(color, size=(1080, 1080)) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, "PNG")
    return buffer.getvalue()


def make_chrome_png(size=(1080, 1080)) -> bytes:
    """Transparent frame with an opaque border."""
    image = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    w, h = size
    draw.rectangle([0, 0, w - 1, h - 1], outline=CHROME_COLOR, width=CHROME_BORDER)
    buffer = BytesIO()
    image.save(buffer, "PNG")
    return buffer.getvalue()


def default_font_bytes() -> bytes:
    # Pillow's bundled TrueType font keeps its file bytes around
    return ImageFont.load_default(size=10).font_bytes


class FakeAssetSource:
    """Serves assets from a dict; values may be bytes or an exception to raise."""

    def __init__(self, assets: dict[str, Union[bytes, BaseException]], delays: Optional[dict[str, float]] = None):
        self.assets = dict(assets)
        self.delays = delays or {}
        self.requested: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> bytes:
        self.requested.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0.01))
            if url not in self.assets:
                raise FileNotFoundError(f"No such asset: {url}")
            value = self.assets[url]
            if isinstance(value, BaseException):
                raise value
            return value
        finally:
            self.in_flight -= 1


@pytest.fixture(scope="session")
def font_bytes() -> bytes:
    return default_font_bytes()


@pytest.fixture(scope="session")
def asset_files(font_bytes) -> dict[str, bytes]:
    files = {
        ASSETS["monster_background"]: make_png(MONSTER_BACKGROUND),
        ASSETS["share_background"]: make_png(SHARE_BACKGROUND),
        ASSETS["cleanup_background"]: make_png(CLEANUP_BACKGROUND),
        ASSETS["chrome"]: make_chrome_png(),
    }
    for url, color in zip(ASSETS["monsters"], MONSTER_COLORS):
        files[url] = make_png(color, (MONSTER_SIZE, MONSTER_SIZE))
    for url in DEFAULT_FONT_FACES.values():
        files[url] = font_bytes
    return files


@pytest.fixture
def source(asset_files) -> FakeAssetSource:
    return FakeAssetSource(asset_files)


@pytest.fixture
def asset_dir(tmp_path, asset_files) -> Path:
    root = tmp_path / "assets"
    for url, data in asset_files.items():
        path = root / url.lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


@pytest.fixture
def canvas(font_bytes) -> Canvas:
    canvas = Canvas(1080, 1080)
    for family in DEFAULT_FONT_FACES:
        canvas.fonts.register(family, font_bytes)
    return canvas


@pytest.fixture
def profile_payload() -> dict:
    return {
        "type": "profile",
        "monster": 2,
        "profile": {"name": "Ana", "team": "Blue", "level": 5},
        "share": {"area": 12.5, "volume": 3.2},
    }


@pytest.fixture
def share_payload() -> dict:
    return {
        "type": "share",
        "profile": {"name": "Ana", "team": "Blue"},
        "share": {"area": 1234.5, "volume": 80},
    }


@pytest.fixture
def cleanup_payload() -> dict:
    return {
        "type": "cleanup",
        "profile": {"name": "Ana", "team": "Blue"},
        "cleanup": {
            "name": "Rheinufer Köln",
            "area": 2500,
            "volume": 340.5,
            "impact": 1200,
            "participants": 18,
        },
    }

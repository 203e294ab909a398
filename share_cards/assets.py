"""Asset pipeline: concurrent fetch and decode of layer images.

Layers are fetched together and joined before compositing. Two join
strategies exist:

- ``JoinStrategy.ALL`` - strict. Any failed layer fails the whole fetch with
  the first failure in request order. Used by every card painter.
- ``JoinStrategy.BEST_EFFORT`` - degraded. Failed layers are dropped and the
  rest are returned in request order. Must be chosen explicitly.
"""

import asyncio
from contextlib import contextmanager
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, Sequence
from urllib.parse import urljoin

import requests
from PIL import Image

from .config import Settings
from .errors import AssetFetchFailed
from .utils import get_logger

logger = get_logger(__name__)

USER_AGENT = "share-cards/0.1 (+requests)"


class AssetSource(Protocol):
    """Anything that can turn an asset URL into raw bytes."""

    async def fetch(self, url: str) -> bytes: ...


class HttpAssetSource:
    """Fetches assets from a static HTTP origin."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def resolve(self, url: str) -> str:
        return urljoin(self.base_url, url.lstrip("/"))

    def _get(self, url: str) -> bytes:
        full_url = self.resolve(url)
        response = self._session.get(full_url, timeout=self.timeout)
        response.raise_for_status()
        logger.debug(f"Fetched {full_url} ({len(response.content)} bytes)")
        return response.content

    async def fetch(self, url: str) -> bytes:
        return await asyncio.to_thread(self._get, url)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpAssetSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class DirectoryAssetSource:
    """Reads assets from a local directory laid out like the asset origin."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def resolve(self, url: str) -> Path:
        return self.root / url.lstrip("/")

    def _read(self, url: str) -> bytes:
        path = self.resolve(url)
        data = path.read_bytes()
        logger.debug(f"Read {path} ({len(data)} bytes)")
        return data

    async def fetch(self, url: str) -> bytes:
        return await asyncio.to_thread(self._read, url)


def build_asset_source(settings: Settings) -> AssetSource:
    """HTTP origin when ASSET_BASE_URL is configured, local assets dir otherwise."""
    if settings.asset_base_url:
        return HttpAssetSource(settings.asset_base_url, timeout=settings.fetch_timeout_s)
    return DirectoryAssetSource(settings.assets_dir)


class JoinStrategy(Enum):
    ALL = "all"
    BEST_EFFORT = "best_effort"


class DecodedImage:
    """A decoded layer bitmap. Close it as soon as it has been drawn."""

    def __init__(self, url: str, image: Image.Image):
        self.url = url
        self.image = image
        self.closed = False

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def close(self) -> None:
        if not self.closed:
            self.image.close()
            self.closed = True

    def __enter__(self) -> "DecodedImage":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{self.width}x{self.height}"
        return f"DecodedImage({self.url!r}, {state})"


@contextmanager
def release_all(images: Iterable[DecodedImage]) -> Iterator[list[DecodedImage]]:
    """Guarantee every image is closed once the block exits, however it exits."""
    images = list(images)
    try:
        yield images
    finally:
        for image in images:
            image.close()


def decode_image(url: str, data: bytes) -> DecodedImage:
    image = Image.open(BytesIO(data))
    image.load()
    return DecodedImage(url, image)


class AssetPipeline:
    """Fetches and decodes layer images for a single render."""

    def __init__(self, source: AssetSource):
        self.source = source

    async def _load(self, url: str) -> DecodedImage:
        data = await self.source.fetch(url)
        return await asyncio.to_thread(decode_image, url, data)

    async def fetch_layers(
        self,
        urls: Sequence[str],
        strategy: JoinStrategy = JoinStrategy.ALL,
    ) -> list[DecodedImage]:
        """Fetch ``urls`` concurrently and return decoded images in request order.

        Raises:
            AssetFetchFailed: with ``JoinStrategy.ALL``, when any layer fails
        """
        urls = list(urls)
        results = await asyncio.gather(
            *(self._load(url) for url in urls),
            return_exceptions=True,
        )

        loaded: list[DecodedImage] = []
        first_failure: Optional[tuple[str, BaseException]] = None
        for url, result in zip(urls, results):
            if isinstance(result, BaseException):
                if first_failure is None:
                    first_failure = (url, result)
                if strategy is JoinStrategy.BEST_EFFORT:
                    logger.warning(f"Dropping layer {url}: {result}")
                continue
            loaded.append(result)

        if first_failure is not None and strategy is JoinStrategy.ALL:
            for image in loaded:
                image.close()
            url, reason = first_failure
            if isinstance(reason, AssetFetchFailed):
                raise reason
            raise AssetFetchFailed(url, reason) from reason

        logger.debug(f"Loaded {len(loaded)}/{len(urls)} layers ({strategy.value})")
        return loaded

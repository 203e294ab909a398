"""Share cards - command line entry point for rendering a single card."""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .assets import DirectoryAssetSource, HttpAssetSource
from .card_renderer import CardRenderer
from .config import settings
from .errors import ShareCardError
from .utils import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a 1080x1080 share card from a JSON payload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m share_cards.main payload.json                     # Write output/<type>.png
  python -m share_cards.main payload.json -o card.png         # Explicit output path
  python -m share_cards.main payload.json --assets-dir public # Local asset tree
  python -m share_cards.main payload.json --asset-base-url https://example.org

Payload types: profile, share, cleanup
        """,
    )

    parser.add_argument(
        "payload",
        type=Path,
        help="JSON file with the render request ('-' for stdin)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output image path (default: OUTPUT_DIR/<card type>.<ext>)",
    )
    parser.add_argument(
        "--assets-dir",
        type=Path,
        help="Read assets from this directory instead of ASSETS_DIR",
    )
    parser.add_argument(
        "--asset-base-url",
        help="Fetch assets from this HTTP origin instead of ASSET_BASE_URL",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def load_payload(path: Path) -> dict:
    if str(path) == "-":
        return json.load(sys.stdin)
    return json.loads(path.read_text(encoding="utf-8"))


def run(args: argparse.Namespace) -> int:
    """Render one card and write it to disk."""
    try:
        payload = load_payload(args.payload)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read payload {args.payload}: {e}")
        return 1

    source = None
    if args.asset_base_url:
        source = HttpAssetSource(args.asset_base_url, timeout=settings.fetch_timeout_s)
    elif args.assets_dir:
        source = DirectoryAssetSource(args.assets_dir)

    try:
        with CardRenderer(settings=settings, source=source) as renderer:
            card = renderer.render_sync(payload)
    except ShareCardError as e:
        logger.error(f"Render failed: {e}")
        return 1

    output = args.output
    if output is None:
        settings.ensure_directories()
        extension = settings.output_format.lower()
        output = settings.output_dir / f"{card.card_type.value}.{extension}"

    card.save(output)
    logger.info(f"Wrote {card.width}x{card.height} {card.media_type} to {output}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.debug else settings.log_level
    setup_logging(level=log_level, gcp_project_id=settings.gcp_project_id)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())

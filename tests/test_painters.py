import pytest

from share_cards.assets import AssetPipeline
from share_cards.canvas import Canvas
from share_cards.errors import AssetFetchFailed, AssetIndexOutOfRange, InvalidPayload
from share_cards.painters import (
    ASSETS,
    DEFAULT_FONT_FACES,
    CleanupPainter,
    ProfilePainter,
    RenderState,
    SharePainter,
    draw_layer_stack,
)
from share_cards.payload import parse_payload

from .conftest import (
    CLEANUP_BACKGROUND,
    SHARE_BACKGROUND,
    FakeAssetSource,
    make_png,
)


def blank_canvas() -> Canvas:
    return Canvas(1080, 1080)


def test_profile_layers_are_background_monster_chrome(profile_payload, source):
    painter = ProfilePainter(AssetPipeline(source))
    layers = painter.required_layers(parse_payload(profile_payload))
    assert layers == [
        ASSETS["monster_background"],
        "/img/social-share-monster-2.png",
        ASSETS["chrome"],
    ]


def test_single_layer_templates(share_payload, cleanup_payload, source):
    pipeline = AssetPipeline(source)
    assert SharePainter(pipeline).required_layers(parse_payload(share_payload)) == [ASSETS["share_background"]]
    assert CleanupPainter(pipeline).required_layers(parse_payload(cleanup_payload)) == [ASSETS["cleanup_background"]]


@pytest.mark.asyncio
@pytest.mark.parametrize("monster", [0, 5, -1])
async def test_monster_index_out_of_range_fails_before_fetching(profile_payload, source, monster):
    payload = parse_payload({**profile_payload, "monster": monster})
    painter = ProfilePainter(AssetPipeline(source))

    with pytest.raises(AssetIndexOutOfRange) as exc_info:
        await painter.render(blank_canvas(), payload)

    assert exc_info.value.index == monster
    assert source.requested == []
    assert painter.state is RenderState.FAILED


@pytest.mark.asyncio
async def test_mismatched_payload_fails_before_drawing(share_payload, source):
    canvas = blank_canvas()
    painter = CleanupPainter(AssetPipeline(source))

    with pytest.raises(InvalidPayload):
        await painter.render(canvas, parse_payload(share_payload))

    assert source.requested == []
    assert canvas.image.getbbox() is None


def test_profile_painter_rejects_other_payloads(cleanup_payload, source):
    painter = ProfilePainter(AssetPipeline(source))
    with pytest.raises(InvalidPayload):
        painter.required_layers(parse_payload(cleanup_payload))


@pytest.mark.asyncio
async def test_missing_layer_fails_whole_render_without_drawing(share_payload, asset_files):
    files = dict(asset_files)
    del files[ASSETS["share_background"]]
    source = FakeAssetSource(files)
    canvas = blank_canvas()

    with pytest.raises(AssetFetchFailed):
        await SharePainter(AssetPipeline(source)).render(canvas, parse_payload(share_payload))

    assert canvas.image.getbbox() is None


@pytest.mark.asyncio
async def test_font_failure_is_terminal(share_payload, asset_files):
    files = dict(asset_files)
    files[DEFAULT_FONT_FACES["Bebas Neue"]] = ConnectionError("font origin down")
    painter = SharePainter(AssetPipeline(FakeAssetSource(files)))

    with pytest.raises(AssetFetchFailed) as exc_info:
        await painter.render(blank_canvas(), parse_payload(share_payload))

    assert exc_info.value.url == DEFAULT_FONT_FACES["Bebas Neue"]
    assert painter.state is RenderState.FAILED


@pytest.mark.asyncio
async def test_render_registers_fonts_and_reaches_text_stage(share_payload, source):
    canvas = blank_canvas()
    painter = SharePainter(AssetPipeline(source))

    await painter.render(canvas, parse_payload(share_payload))

    assert painter.state is RenderState.DRAWING_TEXT
    assert canvas.fonts.families == ["Bebas Neue", "Montserrat"]
    assert canvas.image.getpixel((1000, 300)) == SHARE_BACKGROUND


@pytest.mark.asyncio
async def test_cleanup_painter_draws_centered_title(cleanup_payload, source):
    canvas = blank_canvas()
    await CleanupPainter(AssetPipeline(source)).render(canvas, parse_payload(cleanup_payload))

    assert canvas.image.getpixel((20, 20)) == CLEANUP_BACKGROUND
    # the cleanup name is drawn in white somewhere in its centered band
    band = canvas.image.crop((90, 444, 990, 560))
    assert any(pixel[:3] == (255, 255, 255) for pixel in band.getdata())


@pytest.mark.asyncio
async def test_layers_are_released_after_compositing(profile_payload, source, monkeypatch):
    released = []
    from share_cards import assets

    original_close = assets.DecodedImage.close

    def tracking_close(self):
        if not self.closed:
            released.append(self.url)
        original_close(self)

    monkeypatch.setattr(assets.DecodedImage, "close", tracking_close)

    await ProfilePainter(AssetPipeline(source)).render(blank_canvas(), parse_payload(profile_payload))

    assert released == [
        ASSETS["monster_background"],
        "/img/social-share-monster-2.png",
        ASSETS["chrome"],
    ]


@pytest.mark.asyncio
async def test_layer_stack_draws_whatever_loaded():
    source = FakeAssetSource(
        {
            "/base.png": make_png((10, 20, 30, 255)),
            "/top.png": make_png((0, 0, 0, 0)),
            "/missing.png": FileNotFoundError("gone"),
        }
    )
    canvas = blank_canvas()

    drawn = await draw_layer_stack(canvas, AssetPipeline(source), ["/base.png", "/missing.png", "/top.png"])

    assert drawn == 2
    assert canvas.image.getpixel((500, 500)) == (10, 20, 30, 255)

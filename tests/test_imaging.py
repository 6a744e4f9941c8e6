import io

import pytest
from PIL import Image

from thumbnail_service.imaging import (
    cover_crop,
    detect_focus,
    load_image,
    postprocess_image,
    preprocess_image,
    target_size,
)
from conftest import make_image_bytes


def test_target_size_per_aspect_ratio():
    assert target_size("16:9", 1024) == (1024, 576)
    assert target_size("9:16", 1024) == (576, 1024)


@pytest.mark.parametrize("ratio,expected", [("16:9", (1024, 576)), ("9:16", (576, 1024))])
def test_preprocess_outputs_jpeg_at_working_size(photo_bytes, ratio, expected):
    out = preprocess_image(photo_bytes, ratio)
    with Image.open(io.BytesIO(out)) as im:
        assert im.format == "JPEG"
        assert im.size == expected


def test_detect_focus_finds_bright_subject():
    data = make_image_bytes((1000, 500), square=(800, 200, 900, 300))
    x, y = detect_focus(load_image(data))
    assert 820 <= x <= 880
    assert 220 <= y <= 280


def test_detect_focus_uniform_image_stays_inside_bounds():
    image = load_image(make_image_bytes((300, 200)))
    x, y = detect_focus(image)
    assert 0 <= x < 300 and 0 <= y < 200


def test_cover_crop_follows_subject_near_edge():
    data = make_image_bytes((2000, 1000), square=(1700, 400, 1900, 600))
    image = load_image(data)
    cropped = cover_crop(image, 576, 1024, detect_focus(image))
    assert cropped.size == (576, 1024)
    # Subject lands inside the clamped window on the right side
    r, g, b = cropped.getpixel((370, 512))
    assert min(r, g, b) > 200


def test_cover_crop_clamps_window_inside_image():
    image = Image.new("RGB", (400, 400), (10, 10, 10))
    cropped = cover_crop(image, 160, 90, (0, 0))
    assert cropped.size == (160, 90)


def test_load_image_flattens_transparency():
    img = Image.new("RGBA", (40, 40), (0, 0, 0, 0))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    out = load_image(buf.getvalue())
    assert out.mode == "RGB"
    assert out.getpixel((5, 5)) == (255, 255, 255)


def test_undecodable_upload_raises_value_error():
    with pytest.raises(ValueError):
        preprocess_image(b"definitely not an image", "16:9")


@pytest.mark.parametrize("ratio,expected", [("16:9", (1920, 1080)), ("9:16", (1080, 1920))])
def test_postprocess_resizes_to_delivery_size(ratio, expected):
    out = postprocess_image(make_image_bytes((300, 300)), ratio)
    with Image.open(io.BytesIO(out)) as im:
        assert im.size == expected
        assert im.format == "JPEG"


def test_oversized_pixel_count_is_rejected_as_undecodable(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(ValueError, match="Unsupported or corrupt image"):
        load_image(make_image_bytes((100, 100)))

import io

import numpy as np
import pytest
from PIL import Image

from aidetector.errors import InvalidImageError
from aidetector.preprocess import INPUT_SIZE, preprocess, resize_center_crop, to_rgb

RED, GREEN, BLUE = (255, 0, 0), (0, 255, 0), (0, 0, 255)


def _bands(w: int, h: int, horizontal: bool) -> Image.Image:
    """Three colour bands: outer quarters/thirds red and blue, center green."""
    img = Image.new("RGB", (w, h), GREEN)
    if horizontal:
        q = w // 4
        img.paste(RED, (0, 0, q, h))
        img.paste(BLUE, (w - q, 0, w, h))
    else:
        t = h // 3
        img.paste(RED, (0, 0, w, t))
        img.paste(BLUE, (0, h - t, w, h))
    return img


@pytest.mark.parametrize("size", [(640, 480), (480, 640), (224, 224), (100, 300), (1000, 50)])
def test_output_shape_and_range(size):
    img = Image.new("RGB", size, (12, 34, 56))
    x = preprocess(img)
    assert x.shape == (1, 3, INPUT_SIZE, INPUT_SIZE)
    assert x.dtype == np.float32
    assert x.min() >= 0.0 and x.max() <= 1.0


def test_wide_image_is_center_cropped():
    # 448x224: already 224 on the short side, crop keeps columns 112..335
    x = preprocess(_bands(448, 224, horizontal=True))
    assert np.all(x[0, 0] == 0.0)
    assert np.all(x[0, 1] == 1.0)
    assert np.all(x[0, 2] == 0.0)


def test_tall_image_is_center_cropped():
    # 224x672: crop keeps rows 224..447, the green band
    x = preprocess(_bands(224, 672, horizontal=False))
    assert np.all(x[0, 1] == 1.0)
    assert np.all(x[0, 0] == 0.0)


def test_resize_keeps_aspect_ratio(monkeypatch):
    seen = {}
    original = Image.Image.resize

    def spy(self, size, *args, **kwargs):
        seen["size"] = size
        seen["box"] = kwargs.get("box")
        return original(self, size, *args, **kwargs)

    monkeypatch.setattr(Image.Image, "resize", spy)
    out = resize_center_crop(Image.new("RGB", (600, 400)))
    # 600x400 -> 336x224, crop columns 56..280 -> source columns 100..500
    assert seen["size"] == (224, 224)
    assert seen["box"] == pytest.approx((100.0, 0.0, 500.0, 400.0))
    assert out.size == (224, 224)


@pytest.mark.parametrize("size", [(1, 60000), (60000, 1), (2, 45000)])
def test_extreme_aspect_ratio_stays_small(size):
    img = Image.new("L", size, 200)
    x = preprocess(img)
    assert x.shape == (1, 3, INPUT_SIZE, INPUT_SIZE)
    assert np.allclose(x, 200 / 255.0)


def test_thin_strip_keeps_its_center():
    # 1x3000 strip: only the middle rows survive the crop
    arr = np.zeros((3000, 1), dtype=np.uint8)
    arr[1000:2000] = 255
    x = preprocess(arr)
    assert np.all(x == 1.0)


def test_small_image_is_upscaled():
    out = resize_center_crop(Image.new("RGB", (50, 100)))
    assert out.size == (224, 224)


def test_preprocess_is_deterministic(sample_image):
    assert np.array_equal(preprocess(sample_image), preprocess(sample_image))


def test_grayscale_and_alpha_become_rgb():
    gray = np.full((64, 80), 128, dtype=np.uint8)
    rgba = np.zeros((64, 80, 4), dtype=np.uint8)
    rgba[..., 2] = 255
    rgba[..., 3] = 10

    assert to_rgb(gray).mode == "RGB"
    x = preprocess(rgba)
    assert np.all(x[0, 2] == 1.0)  # alpha dropped, not blended
    assert preprocess(Image.new("LA", (30, 30))).shape == (1, 3, 224, 224)


@pytest.mark.parametrize(
    "bad",
    [
        None,
        "photo.jpg",
        b"\x89PNG",
        np.zeros((0, 0, 3), dtype=np.uint8),
        np.zeros((32, 32, 3), dtype=np.float32),
        np.zeros((32, 32, 2), dtype=np.uint8),
        np.zeros((4, 32, 32, 3), dtype=np.uint8),
    ],
)
def test_invalid_inputs(bad):
    with pytest.raises(InvalidImageError) as excinfo:
        to_rgb(bad)
    assert excinfo.value.message == "Invalid image"


def test_truncated_image_is_invalid():
    arr = np.random.default_rng(0).integers(0, 256, (64, 64, 3), dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    data = buf.getvalue()
    img = Image.open(io.BytesIO(data[: len(data) // 2]))  # header parses, pixels don't
    with pytest.raises(InvalidImageError):
        to_rgb(img)

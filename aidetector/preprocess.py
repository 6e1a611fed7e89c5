"""Input contract of the classifier.

Every image is brought to a 224x224 RGB tensor the same way:

1. convert to RGB (grayscale is replicated, alpha is dropped);
2. resize with bilinear resampling so the shorter side is 224, keeping the
   aspect ratio (the longer side is rounded, never below 224);
3. crop 224x224 around the center, ``left = (w - 224) // 2`` and
   ``top = (h - 224) // 2``;
4. scale to float32 in [0, 1] and lay out as NCHW with a batch of one.

The image is never stretched non-uniformly. Changing any of these steps
changes the classifier's inputs and therefore its scores.
"""
from __future__ import annotations

import numpy as np
from PIL import Image

from aidetector.errors import InvalidImageError

INPUT_SIZE = 224


def to_rgb(image) -> Image.Image:
    """Return ``image`` as an RGB PIL image or raise ``InvalidImageError``.

    Accepts a PIL image or a uint8 array shaped HxW, HxWx1, HxWx3 or HxWx4.
    """
    if isinstance(image, np.ndarray):
        image = _array_to_pil(image)
    if not isinstance(image, Image.Image):
        raise InvalidImageError()
    if image.width <= 0 or image.height <= 0:
        raise InvalidImageError()
    try:
        return image.convert("RGB")
    except (OSError, ValueError) as e:
        # truncated or otherwise unreadable pixel data
        raise InvalidImageError() from e


def _array_to_pil(arr: np.ndarray) -> Image.Image:
    if arr.dtype != np.uint8 or arr.size == 0:
        raise InvalidImageError()
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    # uint8 HxW -> "L", HxWx3 -> "RGB", HxWx4 -> "RGBA"
    if arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] in (3, 4)):
        return Image.fromarray(np.ascontiguousarray(arr))
    raise InvalidImageError()


def resize_center_crop(img: Image.Image, size: int = INPUT_SIZE) -> Image.Image:
    """Aspect-preserving resize followed by a center crop, done in one resample.

    Only the source window that lands in the crop is resampled, so memory
    stays bounded for extreme aspect ratios (a 1x60000 strip would otherwise
    be resized to 224x13440000 before cropping).
    """
    w, h = img.size
    scale = size / min(w, h)
    new_w = max(size, int(round(w * scale)))
    new_h = max(size, int(round(h * scale)))

    # crop offsets in resized coordinates
    left = (new_w - size) // 2
    top = (new_h - size) // 2

    # same window mapped back to source coordinates
    sx, sy = new_w / w, new_h / h
    box = (
        left / sx,
        top / sy,
        min(float(w), (left + size) / sx),
        min(float(h), (top + size) / sy),
    )
    return img.resize((size, size), Image.Resampling.BILINEAR, box=box)


def to_tensor(img: Image.Image) -> np.ndarray:
    """RGB PIL image -> (1, 3, H, W) float32 in [0, 1]."""
    arr = np.asarray(img, dtype=np.float32) / 255.0
    return np.ascontiguousarray(arr.transpose(2, 0, 1)[None, ...])


def preprocess(image, size: int = INPUT_SIZE) -> np.ndarray:
    return to_tensor(resize_center_crop(to_rgb(image), size))

from __future__ import annotations

from io import BytesIO
from typing import Iterable, Set

from fastapi import UploadFile, HTTPException
from PIL import Image, UnidentifiedImageError

DEFAULT_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp")


async def read_upload_image(
    file: UploadFile,
    max_mb: int = 10,
    allowed_content_types: Iterable[str] = DEFAULT_CONTENT_TYPES,
) -> Image.Image:
    """
    Validates size/content-type and decodes the upload into a PIL.Image.
    Pixel format conversion is left to the detector's preprocessing.
    """
    allowed: Set[str] = set(allowed_content_types)
    if file.content_type not in allowed:
        raise HTTPException(status_code=415, detail=f"Unsupported media type: {file.content_type}")

    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file")

    size_mb = len(raw) / (1024 * 1024)
    if size_mb > max_mb:
        raise HTTPException(status_code=413, detail=f"Image too large (> {max_mb} MB)")

    return decode_image(raw)


def decode_image(raw: bytes) -> Image.Image:
    try:
        img = Image.open(BytesIO(raw))
        img.load()  # force full decode so truncated files fail here
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        raise HTTPException(status_code=400, detail="Invalid image file")
    return img

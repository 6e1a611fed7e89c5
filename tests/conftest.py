import io

import numpy as np
import pytest
from PIL import Image

from aidetector.config import Settings
from aidetector.models.base import Classifier
from aidetector.service import DetectionService


class FixedClassifier(Classifier):
    """Returns the same raw output for every image and counts calls."""

    def __init__(self, output, thread_safe: bool = True):
        self.output = output
        self.thread_safe = thread_safe
        self.calls = 0
        self.closed = False

    def score(self, batch):
        self.calls += 1
        return self.output

    def close(self) -> None:
        self.closed = True


class RaisingClassifier(Classifier):
    def __init__(self, exc: Exception):
        self.exc = exc

    def score(self, batch):
        raise self.exc


def gradient_image(w: int = 320, h: int = 240) -> Image.Image:
    """Tiny deterministic gradient RGB image."""
    x = np.linspace(0, 255, w, dtype=np.uint8)
    y = np.linspace(0, 255, h, dtype=np.uint8)
    xx, yy = np.meshgrid(x, y)
    arr = np.stack([xx, yy, ((xx.astype(np.uint16) + yy) // 2).astype(np.uint8)], axis=-1)
    return Image.fromarray(arr)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def settings():
    return Settings(
        model_backend="stub",
        model_path="checkpoints/unused.ts.pt",
        model_version="test-model",
        log_level="DEBUG",
    )


@pytest.fixture
def sample_image():
    return gradient_image()


@pytest.fixture
def make_service(settings):
    """Build services around a given classifier; closed after the test."""
    created = []

    def _make(classifier=None, loader=None, **kwargs):
        if loader is None:
            loader = lambda s: classifier  # noqa: E731
        svc = DetectionService(settings, loader=loader, **kwargs)
        created.append(svc)
        return svc

    yield _make
    for svc in created:
        svc.close()

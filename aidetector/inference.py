from __future__ import annotations

import logging
import math
import time
from typing import Any

import numpy as np
from prometheus_client import Summary

from aidetector.config import Settings
from aidetector.errors import InferenceError, MalformedOutputError, ModelUnavailableError
from aidetector.models.base import Classifier
from aidetector.outcome import LogitPair

logger = logging.getLogger(__name__)

INFERENCE_LATENCY = Summary(
    "inference_latency_seconds",
    "Time spent on model inference",
)


def load_classifier(settings: Settings) -> Classifier:
    """Build the configured classifier or raise ``ModelUnavailableError``.

    A missing artifact is an error; there is no silent fallback to the stub.
    """
    backend = settings.model_backend.lower()
    try:
        if backend == "stub":
            from aidetector.models.stub import StubClassifier
            return StubClassifier()
        if backend == "torchscript":
            from aidetector.models.torchscript import TorchScriptClassifier
            return TorchScriptClassifier(settings.model_path, device=settings.device)
    except Exception as e:
        logger.error(f"Model load failed ({backend}, {settings.model_path}): {e}")
        raise ModelUnavailableError() from e

    logger.error(f"Unknown model backend: {settings.model_backend!r}")
    raise ModelUnavailableError()


def extract_logits(raw: Any) -> LogitPair:
    """Validate classifier output: exactly two finite scores [REAL, FAKE]."""
    if raw is None:
        raise MalformedOutputError()
    try:
        values = np.asarray(raw, dtype=np.float64).ravel()
    except (TypeError, ValueError) as e:
        raise MalformedOutputError() from e
    if values.size != 2 or not all(math.isfinite(v) for v in values):
        raise MalformedOutputError()
    return LogitPair(real=float(values[0]), fake=float(values[1]))


def run_classifier(classifier: Classifier, batch: np.ndarray) -> LogitPair:
    """Score one preprocessed batch. Classifier errors become ``InferenceError``."""
    t0 = time.perf_counter()
    try:
        raw = classifier.score(batch)
    except Exception as e:
        logger.exception("Inference error")
        raise InferenceError.from_exception(e) from e
    finally:
        INFERENCE_LATENCY.observe(time.perf_counter() - t0)
    return extract_logits(raw)

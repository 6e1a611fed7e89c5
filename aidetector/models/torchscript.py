# aidetector/models/torchscript.py
from __future__ import annotations

import hashlib
import logging
import os
from typing import List

import numpy as np
import torch

from aidetector.models.base import Classifier

logger = logging.getLogger(__name__)


def best_available_device() -> str:
    return "cuda" if torch.cuda.is_available() else "cpu"


class TorchScriptClassifier(Classifier):
    """
    TorchScript binary classifier, outputs two logits [REAL, FAKE].

    Forward passes run under ``torch.inference_mode()`` and never touch module
    state, so one instance is shared by concurrent calls without a lock.
    """

    thread_safe = True

    def __init__(self, model_path: str, device: str | None = None):
        if not os.path.exists(model_path):
            raise FileNotFoundError(model_path)
        self.model_path = model_path
        self.device = device or best_available_device()
        try:
            self.model = torch.jit.load(model_path, map_location=self.device)
            self.model.eval()
        except Exception as e:
            raise RuntimeError(f"Failed to load model: {e}") from e

        self.weights_sha256 = self._sha256(model_path)
        # autocast only pays off on GPU
        self.amp_device = "cuda" if self.device == "cuda" else "cpu"
        logger.info(f"TorchScript classifier on {self.device} (sha256 {self.weights_sha256[:12]})")

    @property
    def version(self) -> str:
        return self.weights_sha256[:12]

    def _sha256(self, p: str) -> str:
        h = hashlib.sha256()
        with open(p, "rb") as f:
            for chunk in iter(lambda: f.read(1 << 20), b""):
                h.update(chunk)
        return h.hexdigest()

    @torch.inference_mode()
    def score(self, batch: np.ndarray) -> List[float]:
        x = torch.from_numpy(batch).to(self.device)

        with torch.amp.autocast(self.amp_device, enabled=self.device == "cuda"):
            out = self.model(x)

        if isinstance(out, (tuple, list)):
            out = out[0]
        return out.float().flatten().cpu().tolist()

    def close(self) -> None:
        self.model = None
        if self.device == "cuda":
            torch.cuda.empty_cache()

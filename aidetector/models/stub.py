from __future__ import annotations

from typing import List
import numpy as np

from aidetector.models.base import Classifier


class StubClassifier(Classifier):
    """
    Drop-in placeholder, no torch.
    Deterministic heuristic based on brightness/contrast/edge-ish proxy,
    reported as logits so it goes through the same scoring path as a real model.
    """

    @property
    def version(self) -> str:
        return "stub"

    def score(self, batch: np.ndarray) -> List[float]:
        arr = np.asarray(batch, dtype=np.float32)[0]     # (3,H,W), 0..1
        brightness = float(arr.mean())                  # 0..1
        contrast = float(arr.std()) * 2.0               # 0..~1
        edges = float(np.mean(np.abs(np.diff(arr, axis=1))))  # 0..1-ish

        fake_score = brightness * 0.3 + contrast * 0.5 + edges * 0.4
        fake_score = max(0.0, min(1.0, fake_score))

        # centered logits: fake_score 0.5 is a tie
        return [0.5 - fake_score, fake_score - 0.5]

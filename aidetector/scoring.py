"""Turn the classifier's two logits into a verdict."""
from __future__ import annotations

import math

from aidetector.outcome import AiGenerated, LogitPair, ProbabilityPair, Real


def softmax(logits: LogitPair) -> ProbabilityPair:
    """Binary softmax, shifted by the max logit so ``exp`` never overflows."""
    real_logit, fake_logit = float(logits[0]), float(logits[1])
    m = max(real_logit, fake_logit)
    er = math.exp(real_logit - m)
    ef = math.exp(fake_logit - m)
    total = er + ef
    return ProbabilityPair(real=er / total, fake=ef / total)


def interpret(logits: LogitPair) -> Real | AiGenerated:
    """Pick the dominant class.

    Ties go to ``Real``: a photo is only flagged when the fake probability is
    strictly higher.
    """
    probs = softmax(logits)
    if probs.fake > probs.real:
        return AiGenerated(confidence=probs.fake)
    return Real(confidence=probs.real)

"""
Real vs AI-generated photo detection.

``DetectionService`` is the entry point; outcomes are ``Real``,
``AiGenerated`` or ``Failure``.
"""

from .outcome import AiGenerated, DetectionOutcome, Failure, FailureKind, LogitPair, ProbabilityPair, Real
from .service import DetectionService

__all__ = [
    "DetectionService",
    "DetectionOutcome",
    "Real",
    "AiGenerated",
    "Failure",
    "FailureKind",
    "LogitPair",
    "ProbabilityPair",
]

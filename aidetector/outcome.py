"""Typed results of a single detection call.

A detection produces exactly one of :class:`Real`, :class:`AiGenerated` or
:class:`Failure`. Confidence is always the probability of the winning class.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union


class LogitPair(NamedTuple):
    """Raw classifier scores, in the fixed order [REAL, FAKE]."""
    real: float
    fake: float


class ProbabilityPair(NamedTuple):
    real: float
    fake: float


class FailureKind(str, Enum):
    MODEL_UNAVAILABLE = "model_unavailable"
    INVALID_INPUT = "invalid_input"
    INFERENCE_FAULT = "inference_fault"
    MALFORMED_OUTPUT = "malformed_output"


@dataclass(frozen=True)
class Real:
    confidence: float

    @property
    def label(self) -> str:
        return "real"


@dataclass(frozen=True)
class AiGenerated:
    confidence: float

    @property
    def label(self) -> str:
        return "ai_generated"


@dataclass(frozen=True)
class Failure:
    """A detection that produced no verdict.

    ``message`` is safe to show to a user as-is.
    """
    message: str
    kind: FailureKind = FailureKind.INFERENCE_FAULT

    @property
    def label(self) -> str:
        return "error"

    @classmethod
    def from_error(cls, err) -> "Failure":
        """Build from a :class:`aidetector.errors.DetectionError`."""
        return cls(message=err.message, kind=err.kind)


DetectionOutcome = Union[Real, AiGenerated, Failure]

from __future__ import annotations

import re

from aidetector.outcome import FailureKind

# Anything that looks like an absolute path (posix or windows).
_PATH_RE = re.compile(r"(?<![\w.])(?:[A-Za-z]:\\|/)[^\s'\"]+")


class DetectionError(Exception):
    """Base class for failures converted into a ``Failure`` outcome."""

    kind: FailureKind = FailureKind.INFERENCE_FAULT
    default_message = "Detection failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ModelUnavailableError(DetectionError):
    kind = FailureKind.MODEL_UNAVAILABLE
    default_message = "Model not loaded"


class InvalidImageError(DetectionError):
    kind = FailureKind.INVALID_INPUT
    default_message = "Invalid image"


class InferenceError(DetectionError):
    kind = FailureKind.INFERENCE_FAULT

    @classmethod
    def from_exception(cls, exc: BaseException) -> "InferenceError":
        return cls(describe_exception(exc))


class MalformedOutputError(DetectionError):
    kind = FailureKind.MALFORMED_OUTPUT
    default_message = "No results"


def describe_exception(exc: BaseException) -> str:
    """Short, user-safe description of ``exc``.

    Keeps the first line of the message and replaces filesystem paths, so
    neither tracebacks nor local paths end up in a user-facing message.
    """
    text = str(exc).strip()
    first_line = text.splitlines()[0].strip() if text else ""
    first_line = _PATH_RE.sub("<path>", first_line)
    return first_line or exc.__class__.__name__

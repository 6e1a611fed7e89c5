"""
Classifier backends.

The TorchScript backend imports torch, so it is not re-exported here; load it
through ``aidetector.inference.load_classifier``.
"""

from .base import Classifier
from .stub import StubClassifier

__all__ = ["Classifier", "StubClassifier"]

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class Classifier(ABC):
    # Whether score() may be called from several threads at once.
    thread_safe: bool = True

    @property
    def version(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def score(self, batch: np.ndarray) -> Sequence[float]:
        """
        Takes a (1, 3, 224, 224) float32 batch in [0, 1] and returns the raw
        logits in the order [REAL, FAKE].
        """
        ...

    def close(self) -> None:
        """Release any runtime resources held by the classifier."""

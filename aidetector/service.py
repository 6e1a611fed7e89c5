"""Detection service: owns the classifier and runs detections off the caller's thread.

Example:
    >>> service = DetectionService(settings)
    >>> outcome = await service.detect(image)              # coroutine form
    >>> service.submit(image, show, deliver=loop.call_soon_threadsafe)  # callback form
"""

import asyncio
import functools
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from prometheus_client import Counter

from aidetector.config import Settings, settings as default_settings
from aidetector.errors import (
    DetectionError,
    InvalidImageError,
    ModelUnavailableError,
    describe_exception,
)
from aidetector.inference import load_classifier, run_classifier
from aidetector.models.base import Classifier
from aidetector.outcome import DetectionOutcome, Failure
from aidetector.preprocess import preprocess
from aidetector.scoring import interpret

logger = logging.getLogger(__name__)

DETECTION_OUTCOMES = Counter(
    "detection_outcomes_total",
    "Detection outcomes by label",
    ["label"],
)

# Runs a zero-argument callable on the caller's context,
# e.g. ``loop.call_soon_threadsafe``.
Dispatcher = Callable[[Callable[[], None]], Any]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


def _completed(outcome: DetectionOutcome) -> "Future[DetectionOutcome]":
    future: "Future[DetectionOutcome]" = Future()
    future.set_result(outcome)
    return future


class DetectionService:
    """Classifies photos as real or AI generated.

    The classifier is loaded once, here in the constructor. If loading fails
    the service still comes up; every detection then fails with
    "Model not loaded" without doing any work. There is no retry: build a new
    service to try loading again.

    Scoring runs on ``executor`` (a service-owned thread pool if none is
    given). Concurrent detections share the classifier without a lock unless
    the classifier declares ``thread_safe = False``.

    Args:
        settings: Service settings, the module-level ``settings`` by default.
        loader: Builds the classifier from settings.
        executor: Where scoring runs. Not shut down by :meth:`close`, but
            :meth:`close` still waits for detections already scoring on it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        loader: Callable[[Settings], Classifier] = load_classifier,
        executor: Optional[Executor] = None,
    ):
        self.settings = settings or default_settings
        self.load_error: Optional[str] = None
        self._classifier: Optional[Classifier] = None

        try:
            self._classifier = loader(self.settings)
            logger.info(f"Model loaded (version {self.model_version})")
        except Exception as e:
            self.load_error = describe_exception(e)
            logger.error(f"Model unavailable, detections will fail: {self.load_error}")

        self._score_lock: Optional[threading.Lock] = None
        if self._classifier is not None and not self._classifier.thread_safe:
            self._score_lock = threading.Lock()

        # detections holding a classifier reference; close() waits for zero
        self._idle = threading.Condition()
        self._in_flight = 0

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix="detect",
        )

    @property
    def model_loaded(self) -> bool:
        return self._classifier is not None

    @property
    def model_version(self) -> str:
        if self.settings.model_version:
            return self.settings.model_version
        if self._classifier is not None:
            return self._classifier.version
        return "unknown"

    def run(self, image) -> DetectionOutcome:
        """Run one detection on the current thread. Never raises."""
        with self._idle:
            classifier = self._classifier
            if classifier is not None:
                self._in_flight += 1
        try:
            outcome = self._run_with(classifier, image)
        finally:
            if classifier is not None:
                with self._idle:
                    self._in_flight -= 1
                    if self._in_flight == 0:
                        self._idle.notify_all()

        DETECTION_OUTCOMES.labels(label=outcome.label).inc()
        return outcome

    def _run_with(self, classifier: Optional[Classifier], image) -> DetectionOutcome:
        try:
            if classifier is None:
                raise ModelUnavailableError()
            batch = self._prepare(image)
            if self._score_lock is not None:
                with self._score_lock:
                    logits = run_classifier(classifier, batch)
            else:
                logits = run_classifier(classifier, batch)
        except DetectionError as e:
            logger.warning(f"Detection failed ({e.kind.value}): {e.message}")
            outcome: DetectionOutcome = Failure.from_error(e)
        else:
            outcome = interpret(logits)
            logger.debug(f"Detection: {outcome}")
        return outcome

    @staticmethod
    def _prepare(image):
        try:
            return preprocess(image)
        except DetectionError:
            raise
        except Exception as e:
            # e.g. MemoryError or a Pillow decoder error on a hostile image
            logger.exception("Preprocessing failed")
            raise InvalidImageError() from e

    async def detect(self, image) -> DetectionOutcome:
        """Detect on the executor; the result is returned on the awaiting loop."""
        if self._classifier is None:
            return self.run(image)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.run, image)

    def submit(
        self,
        image,
        callback: Callable[[DetectionOutcome], None],
        deliver: Optional[Dispatcher] = None,
    ) -> "Future[DetectionOutcome]":
        """Detect on the executor and hand the outcome to ``callback`` once.

        ``callback`` is invoked through ``deliver`` (for an asyncio caller,
        ``loop.call_soon_threadsafe``). Without a dispatcher it runs on the
        worker thread. Without a classifier (load failed, or the service is
        closed) the "Model not loaded" failure is dispatched right away and an
        already completed future is returned; the executor is not used.
        """
        dispatch = deliver or _call_now

        def _deliver_now(outcome: DetectionOutcome) -> "Future[DetectionOutcome]":
            dispatch(functools.partial(callback, outcome))
            return _completed(outcome)

        if self._classifier is None:
            return _deliver_now(self.run(image))

        def _on_done(f: "Future[DetectionOutcome]") -> None:
            if f.cancelled():
                logger.debug("Detection cancelled before it ran, nothing delivered")
                return
            exc = f.exception()
            if exc is not None:
                logger.error(f"Detection crashed: {exc!r}")
                outcome: DetectionOutcome = Failure(describe_exception(exc))
            else:
                outcome = f.result()
            dispatch(functools.partial(callback, outcome))

        try:
            future = self._executor.submit(self.run, image)
        except RuntimeError:
            if self._classifier is not None:
                raise
            # close() ran between the check above and the submit
            return _deliver_now(self.run(image))
        future.add_done_callback(_on_done)
        return future

    def close(self) -> None:
        """Release the classifier and the owned executor.

        Waits for detections that are already scoring, on any executor, before
        the classifier is closed. Detections started afterwards fail with
        "Model not loaded".
        """
        with self._idle:
            classifier, self._classifier = self._classifier, None
            while self._in_flight:
                self._idle.wait()
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        if classifier is not None:
            classifier.close()
            logger.info("Model released")

    def __enter__(self) -> "DetectionService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

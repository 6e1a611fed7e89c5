# aidetector/main.py
"""HTTP presentation adapter around DetectionService.

The detector itself is an in-process library; this app only decodes uploads,
awaits the service and renders the outcome the way the result card does:
a headline, the confidence and a whole-percent figure.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from aidetector.config import Settings, settings as default_settings, setup_logging
from aidetector.outcome import AiGenerated, DetectionOutcome, Failure, FailureKind, Real
from aidetector.schemas import DetectResponse, ErrorResponse, HealthResponse
from aidetector.service import DetectionService
from aidetector.utils.image_io import read_upload_image

logger = logging.getLogger(__name__)

FAILURE_STATUS = {
    FailureKind.MODEL_UNAVAILABLE: 503,
    FailureKind.INVALID_INPUT: 400,
    FailureKind.INFERENCE_FAULT: 500,
    FailureKind.MALFORMED_OUTPUT: 500,
}


def render_outcome(
    outcome: DetectionOutcome,
    model_version: str,
    latency: Optional[float] = None,
) -> DetectResponse | JSONResponse:
    if isinstance(outcome, Real):
        headline = "Likely Real"
    elif isinstance(outcome, AiGenerated):
        headline = "Likely AI Generated"
    elif isinstance(outcome, Failure):
        body = ErrorResponse(detail=outcome.message, failure=outcome.kind.value)
        return JSONResponse(status_code=FAILURE_STATUS[outcome.kind], content=body.model_dump())
    else:
        raise TypeError(f"Unhandled detection outcome: {outcome!r}")

    return DetectResponse(
        kind=outcome.label,
        headline=headline,
        confidence=outcome.confidence,
        confidence_percent=int(outcome.confidence * 100),
        model_version=model_version,
        inference_latency_s=latency,
    )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[DetectionService] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level)

    if service is None:
        service = DetectionService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.service.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_credentials=False,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Prometheus metrics: expose /metrics ---
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        """Liveness endpoint."""
        return {"status": "ok", "model": settings.model_path}

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        """K8s-style health endpoint, reports whether the model is usable."""
        svc: DetectionService = app.state.service
        return HealthResponse(
            status="ok",
            model_loaded=svc.model_loaded,
            model_version=svc.model_version,
        )

    @app.post(
        "/predict",
        response_model=DetectResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse},
                   503: {"model": ErrorResponse}},
    )
    async def predict(file: UploadFile = File(...)) -> Any:
        """
        Accepts an image (jpeg/png/webp) and classifies it as real or AI generated.

        Returns (example shape):

            {
              "kind": "real" | "ai_generated",
              "headline": "Likely Real" | "Likely AI Generated",
              "confidence": <float in (0, 1]>,
              "confidence_percent": <int>,
              "model_version": "<string>",
              "inference_latency_s": <float>
            }

        Failures come back as {"kind": "error", "detail": "<message>", ...}.
        """
        img = await read_upload_image(file, max_mb=settings.max_image_size_mb)

        svc: DetectionService = app.state.service
        t0 = time.perf_counter()
        outcome = await svc.detect(img)
        latency = time.perf_counter() - t0

        if isinstance(outcome, Failure):
            logger.warning(f"Predict failed for {file.filename!r}: {outcome.message}")
        return render_outcome(outcome, svc.model_version, latency)

    return app


app = create_app()

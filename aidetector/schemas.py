from __future__ import annotations

from typing import Literal, Optional
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(json_schema_extra={"example": "ok"})
    model_loaded: bool = Field(json_schema_extra={"example": True})
    model_version: str = Field(json_schema_extra={"example": "3f2a9c1b07de"})


class DetectResponse(BaseModel):
    kind: Literal["real", "ai_generated"] = Field(json_schema_extra={"example": "ai_generated"})
    headline: str = Field(json_schema_extra={"example": "Likely AI Generated"})
    confidence: float = Field(gt=0, le=1, json_schema_extra={"example": 0.9975})
    confidence_percent: int = Field(ge=0, le=100, json_schema_extra={
        "example": 99, "description": "Confidence as a whole percent, truncated"})
    model_version: str = Field(json_schema_extra={"example": "3f2a9c1b07de"})
    inference_latency_s: Optional[float] = None


class ErrorResponse(BaseModel):
    kind: Literal["error"] = "error"
    headline: str = Field(default="Error")
    detail: str = Field(json_schema_extra={"example": "Model not loaded"})
    failure: str = Field(json_schema_extra={"example": "model_unavailable"})

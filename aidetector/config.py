from __future__ import annotations

import logging
import os
from typing import List, Optional
from pydantic import BaseModel


def _parse_csv_list(val: str | None) -> List[str]:
    if not val:
        return []
    return [x.strip() for x in val.split(",") if x.strip()]


def _optional_int(val: str | None) -> Optional[int]:
    if not val:
        return None
    return int(val)


class Settings(BaseModel):
    # App
    app_name: str = os.getenv("APP_NAME", "ai-photo-detector")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    model_version: str | None = os.getenv("MODEL_VERSION")  # defaults to weights hash

    # Model
    model_path: str = os.getenv("MODEL_PATH", "checkpoints/ai_detector.ts.pt")
    model_backend: str = os.getenv("MODEL_BACKEND", "torchscript")  # torchscript | stub
    device: str | None = os.getenv("DEVICE") or None  # None = best available

    # Worker threads for scoring (None = executor default)
    max_workers: Optional[int] = _optional_int(os.getenv("MAX_WORKERS"))

    # Uploads
    max_image_size_mb: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "10"))

    # CORS
    allowed_origins: List[str] = _parse_csv_list(os.getenv("ALLOWED_ORIGINS", "*"))


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


settings = Settings()

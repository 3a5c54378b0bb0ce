from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return float(raw)


@dataclass
class Settings:
    # Defaults are the thresholds the mobile capture flow ships with.
    min_short_side: int = field(default_factory=lambda: int(os.getenv("QUALITY_MIN_SHORT_SIDE", "480")))
    min_face_area_ratio: float = field(
        default_factory=lambda: float(os.getenv("QUALITY_MIN_FACE_AREA_RATIO", "0.09"))
    )
    max_face_area_ratio: float = field(
        default_factory=lambda: float(os.getenv("QUALITY_MAX_FACE_AREA_RATIO", "0.65"))
    )
    max_yaw_degrees: float = field(default_factory=lambda: float(os.getenv("QUALITY_MAX_YAW_DEGREES", "25")))
    max_roll_degrees: float = field(default_factory=lambda: float(os.getenv("QUALITY_MAX_ROLL_DEGREES", "20")))
    min_brightness: float = field(default_factory=lambda: float(os.getenv("QUALITY_MIN_BRIGHTNESS", "52")))
    max_brightness: float = field(default_factory=lambda: float(os.getenv("QUALITY_MAX_BRIGHTNESS", "210")))
    min_contrast: float = field(default_factory=lambda: float(os.getenv("QUALITY_MIN_CONTRAST", "17")))
    min_blur_variance: float = field(default_factory=lambda: float(os.getenv("QUALITY_MIN_BLUR_VARIANCE", "70")))
    preview_long_edge: int = field(default_factory=lambda: int(os.getenv("QUALITY_PREVIEW_LONG_EDGE", "192")))
    face_backend: str = field(
        default_factory=lambda: os.getenv("QUALITY_FACE_BACKEND", "mediapipe").strip().lower()
    )
    # Unset means stages may block indefinitely.
    stage_timeout_seconds: Optional[float] = field(
        default_factory=lambda: _optional_float("QUALITY_STAGE_TIMEOUT_SECONDS")
    )
    fetch_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("QUALITY_FETCH_TIMEOUT_SECONDS", "15"))
    )

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class QualityIssueCode(str, Enum):
    # Declaration order is detection order.
    LOW_RESOLUTION = "LOW_RESOLUTION"
    NO_FACE = "NO_FACE"
    MULTIPLE_FACES = "MULTIPLE_FACES"
    FACE_TOO_FAR = "FACE_TOO_FAR"
    FACE_TOO_CLOSE = "FACE_TOO_CLOSE"
    HEAD_ANGLE = "HEAD_ANGLE"
    LOW_LIGHT = "LOW_LIGHT"
    OVEREXPOSED = "OVEREXPOSED"
    LOW_CONTRAST = "LOW_CONTRAST"
    BLURRY = "BLURRY"


class QualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    brightness: float = 0.0
    contrast: float = 0.0
    blurVariance: float = 0.0
    faceCount: int = Field(default=0, ge=0)
    faceAreaRatio: float = Field(default=0.0, ge=0.0, le=1.0)
    faceYaw: Optional[float] = None
    faceRoll: Optional[float] = None
    shortSide: int = Field(default=0, ge=0)


class AnalysisSubmissionMetadata(BaseModel):
    """Advisory fields attached to an analysis-creation request."""

    model_config = ConfigDict(frozen=True)

    quality_score: int
    quality_metrics: QualityMetrics


class QualityGateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    score: int = Field(ge=0, le=100)
    issues: Tuple[QualityIssueCode, ...] = ()
    message: str
    metrics: QualityMetrics
    faceDetectionAvailable: bool

    def submission_metadata(self) -> AnalysisSubmissionMetadata:
        return AnalysisSubmissionMetadata(quality_score=self.score, quality_metrics=self.metrics)


class EvaluateRequest(BaseModel):
    imageUrl: Optional[str] = None
    imageBase64: Optional[str] = None
    mimeType: Optional[str] = None
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

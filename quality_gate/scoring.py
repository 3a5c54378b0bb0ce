from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import Settings
from .face import FaceAssessment
from .models import QualityIssueCode
from .quality import PixelStatistics

DEDUCTIONS: Dict[QualityIssueCode, int] = {
    QualityIssueCode.LOW_RESOLUTION: 20,
    QualityIssueCode.NO_FACE: 35,
    QualityIssueCode.MULTIPLE_FACES: 20,
    QualityIssueCode.FACE_TOO_FAR: 16,
    QualityIssueCode.FACE_TOO_CLOSE: 10,
    QualityIssueCode.HEAD_ANGLE: 10,
    QualityIssueCode.LOW_LIGHT: 14,
    QualityIssueCode.OVEREXPOSED: 10,
    QualityIssueCode.LOW_CONTRAST: 9,
    QualityIssueCode.BLURRY: 18,
}

# A lone low-contrast finding is tolerated; every other issue rejects the photo.
TOLERATED_ALONE: Tuple[QualityIssueCode, ...] = (QualityIssueCode.LOW_CONTRAST,)


@dataclass(frozen=True)
class ScoreOutcome:
    issues: Tuple[QualityIssueCode, ...]
    score: int
    ok: bool


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def _face_issues(face: FaceAssessment, settings: Settings) -> List[QualityIssueCode]:
    if not face.available:
        return []
    if face.face_count == 0:
        return [QualityIssueCode.NO_FACE]
    if face.face_count > 1:
        return [QualityIssueCode.MULTIPLE_FACES]

    issues: List[QualityIssueCode] = []
    if face.face_area_ratio < settings.min_face_area_ratio:
        issues.append(QualityIssueCode.FACE_TOO_FAR)
    elif face.face_area_ratio > settings.max_face_area_ratio:
        issues.append(QualityIssueCode.FACE_TOO_CLOSE)

    yaw_off = face.yaw is not None and abs(face.yaw) > settings.max_yaw_degrees
    roll_off = face.roll is not None and abs(face.roll) > settings.max_roll_degrees
    if yaw_off or roll_off:
        issues.append(QualityIssueCode.HEAD_ANGLE)
    return issues


def _pixel_issues(pixels: PixelStatistics, settings: Settings) -> List[QualityIssueCode]:
    issues: List[QualityIssueCode] = []
    if pixels.brightness < settings.min_brightness:
        issues.append(QualityIssueCode.LOW_LIGHT)
    elif pixels.brightness > settings.max_brightness:
        issues.append(QualityIssueCode.OVEREXPOSED)
    if pixels.contrast < settings.min_contrast:
        issues.append(QualityIssueCode.LOW_CONTRAST)
    if pixels.blur_variance < settings.min_blur_variance:
        issues.append(QualityIssueCode.BLURRY)
    return issues


def detect_issues(
    short_side: int,
    face: FaceAssessment,
    pixels: Optional[PixelStatistics],
    settings: Settings,
) -> Tuple[QualityIssueCode, ...]:
    """Collect issues in precedence order: resolution, face, lighting, contrast, blur.

    ``pixels`` is ``None`` when the preview could not be decoded; no pixel
    issue is raised in that case.
    """
    issues: List[QualityIssueCode] = []
    if 0 < short_side < settings.min_short_side:
        issues.append(QualityIssueCode.LOW_RESOLUTION)
    issues.extend(_face_issues(face, settings))
    if pixels is not None:
        issues.extend(_pixel_issues(pixels, settings))
    return tuple(issues)


def score_issues(issues: Sequence[QualityIssueCode]) -> int:
    return _clamp(100 - sum(DEDUCTIONS[issue] for issue in issues), 0, 100)


def is_acceptable(issues: Sequence[QualityIssueCode]) -> bool:
    return len(issues) == 0 or tuple(issues) == TOLERATED_ALONE


def score_quality(
    short_side: int,
    face: FaceAssessment,
    pixels: Optional[PixelStatistics],
    settings: Settings,
) -> ScoreOutcome:
    issues = detect_issues(short_side, face, pixels, settings)
    return ScoreOutcome(issues=issues, score=score_issues(issues), ok=is_acceptable(issues))

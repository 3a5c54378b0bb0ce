from __future__ import annotations

from typing import Dict, Sequence

from .models import QualityIssueCode

GOOD_MESSAGE = "Photo quality is good."

MESSAGE_BY_ISSUE: Dict[QualityIssueCode, str] = {
    QualityIssueCode.LOW_RESOLUTION: "Photo resolution is too low. Move closer and try again.",
    QualityIssueCode.NO_FACE: "No clear face detected. Center your face and retry.",
    QualityIssueCode.MULTIPLE_FACES: "Multiple faces detected. Keep only one face in frame.",
    QualityIssueCode.FACE_TOO_FAR: "Face is too far. Move closer to the camera.",
    QualityIssueCode.FACE_TOO_CLOSE: "Face is too close. Move slightly back.",
    QualityIssueCode.HEAD_ANGLE: "Keep your head straight and look at the camera.",
    QualityIssueCode.LOW_LIGHT: "Lighting is too dark. Move to a brighter area.",
    QualityIssueCode.OVEREXPOSED: "Lighting is too strong. Avoid direct bright light.",
    QualityIssueCode.LOW_CONTRAST: "Image contrast is low. Improve lighting and retry.",
    QualityIssueCode.BLURRY: "Image looks blurry. Hold steady and retake the photo.",
}


def first_issue_message(issues: Sequence[QualityIssueCode]) -> str:
    if not issues:
        return GOOD_MESSAGE
    return MESSAGE_BY_ISSUE[issues[0]]

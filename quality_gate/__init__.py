from .face import DetectedFace, DetectorError, FaceDetector, FaceObservation
from .gate import QualityGate, evaluate
from .models import QualityGateResult, QualityIssueCode, QualityMetrics

__all__ = [
    "DetectedFace",
    "DetectorError",
    "FaceDetector",
    "FaceObservation",
    "QualityGate",
    "QualityGateResult",
    "QualityIssueCode",
    "QualityMetrics",
    "evaluate",
]

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np
from PIL import Image

from .config import Settings

log = logging.getLogger(__name__)


class DetectorError(RuntimeError):
    """Raised by a face detector that could not produce an observation."""


@dataclass(frozen=True)
class DetectedFace:
    bbox_width: float
    bbox_height: float
    yaw: Optional[float] = None
    roll: Optional[float] = None


@dataclass(frozen=True)
class FaceObservation:
    faces: Tuple[DetectedFace, ...]
    # Dimensions of the image the detector actually ran on; 0 when unknown.
    image_width: int = 0
    image_height: int = 0


class FaceDetector(Protocol):
    def detect(self, image: Image.Image) -> FaceObservation:
        ...


@dataclass(frozen=True)
class FaceAssessment:
    available: bool
    face_count: int = 0
    face_area_ratio: float = 0.0
    yaw: Optional[float] = None
    roll: Optional[float] = None


UNAVAILABLE = FaceAssessment(available=False)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def assess_observation(observation: FaceObservation, declared_width: int, declared_height: int) -> FaceAssessment:
    """Reduce a detector observation to the signals the scorer needs."""
    face_count = len(observation.faces)
    if face_count != 1:
        return FaceAssessment(available=True, face_count=face_count)

    face = observation.faces[0]
    width = observation.image_width or declared_width or 1
    height = observation.image_height or declared_height or 1
    image_area = max(width * height, 1)
    face_area = max(face.bbox_width, 0.0) * max(face.bbox_height, 0.0)

    return FaceAssessment(
        available=True,
        face_count=1,
        face_area_ratio=_clamp(face_area / image_area, 0.0, 1.0),
        yaw=face.yaw,
        roll=face.roll,
    )


class MediaPipeFaceDetector:
    """Face detector backed by MediaPipe's short/full-range BlazeFace model."""

    # Keypoint order of mp.solutions.face_detection.
    RIGHT_EYE = 0
    LEFT_EYE = 1
    NOSE_TIP = 2

    def __init__(self, model_selection: int = 1, min_detection_confidence: float = 0.5) -> None:
        self._model_selection = model_selection
        self._min_detection_confidence = min_detection_confidence
        self._model = None
        self._init_error: Optional[str] = None
        self._lock = threading.Lock()

    def _ensure_model(self):
        if self._model is not None:
            return self._model
        if self._init_error is not None:
            raise DetectorError(self._init_error)

        try:
            import mediapipe as mp  # type: ignore

            self._model = mp.solutions.face_detection.FaceDetection(
                model_selection=self._model_selection,
                min_detection_confidence=self._min_detection_confidence,
            )
        except Exception as exc:
            self._init_error = str(exc)
            raise DetectorError(self._init_error) from exc
        return self._model

    def warm_up(self) -> None:
        with self._lock:
            self._ensure_model()

    @classmethod
    def _angles(cls, keypoints, width: int, height: int) -> Tuple[Optional[float], Optional[float]]:
        try:
            right = keypoints[cls.RIGHT_EYE]
            left = keypoints[cls.LEFT_EYE]
            nose = keypoints[cls.NOSE_TIP]
        except (IndexError, TypeError):
            return None, None

        rx, ry = float(right.x) * width, float(right.y) * height
        lx, ly = float(left.x) * width, float(left.y) * height
        nx = float(nose.x) * width

        roll = math.degrees(math.atan2(ly - ry, lx - rx))

        half_inter_eye = math.hypot(lx - rx, ly - ry) / 2.0
        if half_inter_eye < 1e-6:
            return None, roll
        offset = (nx - (lx + rx) / 2.0) / half_inter_eye
        # Crude: nose displacement against half the eye span approximates sin(yaw).
        yaw = math.degrees(math.asin(_clamp(offset, -1.0, 1.0)))
        return yaw, roll

    def detect(self, image: Image.Image) -> FaceObservation:
        rgb = np.asarray(image.convert("RGB"))
        height, width = rgb.shape[:2]

        with self._lock:
            model = self._ensure_model()
            result = model.process(rgb)

        faces = []
        for detection in getattr(result, "detections", None) or []:
            location = detection.location_data
            box = location.relative_bounding_box
            yaw, roll = self._angles(location.relative_keypoints, width, height)
            faces.append(
                DetectedFace(
                    bbox_width=float(box.width) * width,
                    bbox_height=float(box.height) * height,
                    yaw=yaw,
                    roll=roll,
                )
            )
        return FaceObservation(faces=tuple(faces), image_width=width, image_height=height)


def build_face_detector(settings: Settings) -> Optional[FaceDetector]:
    """Probe the configured backend once; ``None`` means the capability is absent."""
    backend = settings.face_backend
    if backend == "none":
        return None
    if backend != "mediapipe":
        log.warning("face_backend_unknown backend=%s", backend)
        return None

    detector = MediaPipeFaceDetector()
    try:
        detector.warm_up()
    except DetectorError as exc:
        log.info("face_backend_unavailable backend=%s error=%s", backend, exc)
        return None
    return detector

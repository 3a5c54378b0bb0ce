from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import lru_cache
from typing import Optional, TypeVar

from PIL import Image

from .config import Settings
from .decode import ImageRef, downscale, load_image
from .face import UNAVAILABLE, FaceAssessment, FaceDetector, assess_observation, build_face_detector
from .messages import first_issue_message
from .models import QualityGateResult, QualityMetrics
from .quality import PixelStatistics, estimate_quality
from .scoring import score_quality

log = logging.getLogger(__name__)

T = TypeVar("T")


class QualityGate:
    """Decides whether a captured selfie is good enough to send for analysis.

    The capture is loaded and decoded once, then pixel statistics and face
    detection run concurrently on it and are joined before scoring. All stages
    share one deadline. A stage that fails or runs past ``timeout`` seconds
    contributes default metrics instead of an error, so ``evaluate`` always
    returns a well-formed result for any image input.
    """

    def __init__(
        self,
        face_detector: Optional[FaceDetector] = None,
        settings: Optional[Settings] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.face_detector = face_detector
        self.timeout = timeout

    @property
    def face_detection_enabled(self) -> bool:
        return self.face_detector is not None

    def _load(self, image_ref: Optional[ImageRef], deadline: Optional[float]) -> Optional[Image.Image]:
        fetch_timeout = self.settings.fetch_timeout_seconds
        if deadline is not None:
            fetch_timeout = max(0.001, min(fetch_timeout, deadline - time.monotonic()))
        return load_image(image_ref, fetch_timeout=fetch_timeout)

    def _pixel_stage(self, image: Image.Image) -> PixelStatistics:
        return estimate_quality(downscale(image, self.settings.preview_long_edge))

    def _face_stage(self, image: Image.Image, declared_width: int, declared_height: int) -> FaceAssessment:
        try:
            observation = self.face_detector.detect(image)
        except Exception as exc:
            log.warning("face_detection_failed error=%s", exc)
            return UNAVAILABLE
        return assess_observation(observation, declared_width, declared_height)

    @staticmethod
    def _join(future: "Future[T]", deadline: Optional[float], stage: str, fallback: T) -> T:
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        try:
            return future.result(timeout=remaining)
        except FutureTimeoutError:
            log.warning("%s_timeout", stage)
            return fallback

    def evaluate(
        self,
        image_ref: Optional[ImageRef],
        declared_width: Optional[int] = None,
        declared_height: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> QualityGateResult:
        width = max(0, int(declared_width or 0))
        height = max(0, int(declared_height or 0))
        short_side = min(width, height)

        budget = self.timeout if timeout is None else timeout
        deadline = None if budget is None else time.monotonic() + budget

        pixels: Optional[PixelStatistics] = None
        face = UNAVAILABLE
        executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="quality-gate")
        try:
            # The capture is read and decoded once; both stages share the image.
            load_future = executor.submit(self._load, image_ref, deadline)
            image = self._join(load_future, deadline, "image_load", None)
            if image is not None:
                pixel_future = executor.submit(self._pixel_stage, image)
                face_future = None
                if self.face_detector is not None:
                    face_future = executor.submit(self._face_stage, image, width, height)
                pixels = self._join(pixel_future, deadline, "pixel_statistics", None)
                if face_future is not None:
                    face = self._join(face_future, deadline, "face_detection", UNAVAILABLE)
        finally:
            # A stuck stage keeps its worker thread; the caller is not held up by it.
            executor.shutdown(wait=False, cancel_futures=True)

        outcome = score_quality(short_side, face, pixels, self.settings)
        metrics = QualityMetrics(
            brightness=pixels.brightness if pixels else 0.0,
            contrast=pixels.contrast if pixels else 0.0,
            blurVariance=pixels.blur_variance if pixels else 0.0,
            faceCount=face.face_count,
            faceAreaRatio=face.face_area_ratio,
            faceYaw=face.yaw,
            faceRoll=face.roll,
            shortSide=short_side,
        )
        result = QualityGateResult(
            ok=outcome.ok,
            score=outcome.score,
            issues=outcome.issues,
            message=first_issue_message(outcome.issues),
            metrics=metrics,
            faceDetectionAvailable=face.available,
        )
        log.debug(
            "quality_evaluated score=%d ok=%s issues=%s face_available=%s",
            result.score,
            result.ok,
            ",".join(issue.value for issue in result.issues) or "-",
            result.faceDetectionAvailable,
        )
        return result


@lru_cache(maxsize=1)
def get_default_gate() -> QualityGate:
    settings = Settings()
    return QualityGate(
        face_detector=build_face_detector(settings),
        settings=settings,
        timeout=settings.stage_timeout_seconds,
    )


def evaluate(
    image_ref: Optional[ImageRef],
    declared_width: Optional[int] = None,
    declared_height: Optional[int] = None,
    timeout: Optional[float] = None,
) -> QualityGateResult:
    return get_default_gate().evaluate(image_ref, declared_width, declared_height, timeout=timeout)

import sys
from types import SimpleNamespace

from PIL import Image

from quality_gate.config import Settings
from quality_gate.face import (
    DetectedFace,
    DetectorError,
    FaceObservation,
    MediaPipeFaceDetector,
    assess_observation,
    build_face_detector,
)


def _point(x: float, y: float) -> SimpleNamespace:
    return SimpleNamespace(x=x, y=y)


def _detection(xmin: float, ymin: float, width: float, height: float, keypoints) -> SimpleNamespace:
    return SimpleNamespace(
        location_data=SimpleNamespace(
            relative_bounding_box=SimpleNamespace(xmin=xmin, ymin=ymin, width=width, height=height),
            relative_keypoints=keypoints,
        )
    )


class _FakeModel:
    def __init__(self, detections) -> None:
        self._detections = detections

    def process(self, rgb):
        return SimpleNamespace(detections=self._detections)


def test_area_ratio_uses_detector_image_size() -> None:
    observation = FaceObservation(
        faces=(DetectedFace(bbox_width=100, bbox_height=100, yaw=3.0, roll=-4.0),),
        image_width=200,
        image_height=200,
    )

    assessment = assess_observation(observation, declared_width=4000, declared_height=3000)

    assert assessment.available is True
    assert assessment.face_count == 1
    assert assessment.face_area_ratio == 0.25
    assert assessment.yaw == 3.0
    assert assessment.roll == -4.0


def test_area_ratio_falls_back_to_declared_size() -> None:
    observation = FaceObservation(faces=(DetectedFace(bbox_width=300, bbox_height=400),))

    assessment = assess_observation(observation, declared_width=1000, declared_height=1200)

    assert assessment.face_area_ratio == 0.1
    assert assessment.yaw is None
    assert assessment.roll is None


def test_area_ratio_is_clamped() -> None:
    observation = FaceObservation(
        faces=(DetectedFace(bbox_width=500, bbox_height=500),), image_width=100, image_height=100
    )

    assert assess_observation(observation, 0, 0).face_area_ratio == 1.0


def test_multiple_faces_keep_default_geometry() -> None:
    observation = FaceObservation(
        faces=(DetectedFace(10, 10), DetectedFace(20, 20)), image_width=100, image_height=100
    )

    assessment = assess_observation(observation, 100, 100)

    assert assessment.face_count == 2
    assert assessment.face_area_ratio == 0.0
    assert assessment.yaw is None


def test_mediapipe_detector_maps_detections() -> None:
    keypoints = [_point(0.4, 0.4), _point(0.6, 0.4), _point(0.5, 0.5)]
    detector = MediaPipeFaceDetector()
    detector._model = _FakeModel([_detection(0.25, 0.25, 0.5, 0.5, keypoints)])

    observation = detector.detect(Image.new("RGB", (200, 100)))

    assert observation.image_width == 200
    assert observation.image_height == 100
    face = observation.faces[0]
    assert face.bbox_width == 100.0
    assert face.bbox_height == 50.0
    assert abs(face.yaw) < 1e-9
    assert abs(face.roll) < 1e-9


def test_mediapipe_detector_estimates_roll_and_yaw() -> None:
    # Eye line rising 45 degrees, nose shifted by a full half eye span.
    keypoints = [_point(0.4, 0.4), _point(0.5, 0.5), _point(0.45 + 0.0707, 0.45)]
    detector = MediaPipeFaceDetector()
    detector._model = _FakeModel([_detection(0.2, 0.2, 0.4, 0.4, keypoints)])

    face = detector.detect(Image.new("RGB", (100, 100))).faces[0]

    assert abs(face.roll - 45.0) < 1e-6
    assert face.yaw > 80.0


def test_mediapipe_detector_without_keypoints_has_no_angles() -> None:
    detector = MediaPipeFaceDetector()
    detector._model = _FakeModel([_detection(0.2, 0.2, 0.4, 0.4, [])])

    face = detector.detect(Image.new("RGB", (100, 100))).faces[0]

    assert face.yaw is None
    assert face.roll is None


def test_mediapipe_detector_reports_no_faces() -> None:
    detector = MediaPipeFaceDetector()
    detector._model = _FakeModel(None)

    assert detector.detect(Image.new("RGB", (64, 64))).faces == ()


def test_mediapipe_detector_raises_when_backend_missing(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "mediapipe", None)
    detector = MediaPipeFaceDetector()

    try:
        detector.detect(Image.new("RGB", (64, 64)))
    except DetectorError:
        pass
    else:
        raise AssertionError("expected DetectorError")


def test_build_face_detector_honours_none_backend(monkeypatch) -> None:
    monkeypatch.setenv("QUALITY_FACE_BACKEND", "none")

    assert build_face_detector(Settings()) is None


def test_build_face_detector_rejects_unknown_backend(monkeypatch) -> None:
    monkeypatch.setenv("QUALITY_FACE_BACKEND", "opencv")

    assert build_face_detector(Settings()) is None


def test_build_face_detector_without_mediapipe(monkeypatch) -> None:
    monkeypatch.setenv("QUALITY_FACE_BACKEND", "mediapipe")
    monkeypatch.setitem(sys.modules, "mediapipe", None)

    assert build_face_detector(Settings()) is None

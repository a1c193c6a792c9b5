"""
Face detector and feature extractor around fake MediaPipe task instances.
"""

from types import SimpleNamespace

import mediapipe as mp
import numpy as np
import pytest

from absence.exceptions import DetectorError
from detectors.face_detector import FaceDetector
from detectors.feature_extractor import READY_MESSAGE, FeatureExtractor


class FakeEmbedder:
    def __init__(self):
        self.sizes = []
        self.closed = False

    def embed(self, image):
        self.sizes.append((image.width, image.height))
        return SimpleNamespace(embeddings=[SimpleNamespace(embedding=[0.5, 0.25, 0.25])])

    def close(self):
        self.closed = True


class FakeFaceTask:
    def __init__(self, detections):
        self.detections = detections
        self.closed = False

    def detect(self, image):
        return SimpleNamespace(detections=self.detections)

    def close(self):
        self.closed = True


def _cache_model(settings, filename):
    settings.model_dir.mkdir(parents=True, exist_ok=True)
    (settings.model_dir / filename).write_bytes(b"model")


@pytest.fixture
def embedder(settings, monkeypatch):
    _cache_model(settings, settings.feature_model)
    fake = FakeEmbedder()
    monkeypatch.setattr(mp.tasks.vision.ImageEmbedder, "create_from_options", lambda options: fake)
    return fake


def test_load_warms_up_then_reports_ready(settings, embedder):
    extractor = FeatureExtractor(settings)
    statuses = []

    extractor.load(statuses.append)

    assert extractor.ready
    assert embedder.sizes == [(224, 224)]
    assert statuses == [{"status_message": READY_MESSAGE}]


def test_embed_resizes_frame(settings, embedder):
    extractor = FeatureExtractor(settings)
    extractor.init(extractor.default_settings())

    vector = extractor.embed(np.zeros((480, 640, 3), dtype=np.uint8))

    assert embedder.sizes == [(224, 224)]
    assert vector.dtype == np.float32
    assert vector.shape == (3,)


def test_embed_before_init_raises(settings):
    with pytest.raises(DetectorError):
        FeatureExtractor(settings).embed(np.zeros((224, 224, 3), dtype=np.uint8))


def test_embedder_creation_failure_raises(settings, monkeypatch):
    _cache_model(settings, settings.feature_model)

    def broken(options):
        raise RuntimeError("bad model")

    monkeypatch.setattr(mp.tasks.vision.ImageEmbedder, "create_from_options", broken)

    with pytest.raises(DetectorError):
        FeatureExtractor(settings).init({})


def test_close_releases_embedder(settings, embedder):
    extractor = FeatureExtractor(settings)
    extractor.init({})
    extractor.close()

    assert embedder.closed
    assert not extractor.ready


def test_faces_use_pixel_keypoints(settings, monkeypatch):
    _cache_model(settings, settings.face_model)
    detection = SimpleNamespace(
        categories=[SimpleNamespace(score=0.8)],
        bounding_box=SimpleNamespace(origin_x=10, origin_y=20, width=100, height=120),
        keypoints=[SimpleNamespace(x=0.5, y=0.25), SimpleNamespace(x=0.25, y=1.0)],
    )
    task = FakeFaceTask([detection])
    monkeypatch.setattr(mp.tasks.vision.FaceDetector, "create_from_options", lambda options: task)
    detector = FaceDetector(settings)
    detector.init(detector.default_settings())

    faces = detector.estimate_faces(np.zeros((480, 640, 3), dtype=np.uint8))

    assert len(faces) == 1
    assert faces[0].score == pytest.approx(0.8)
    assert (faces[0].origin_x, faces[0].origin_y, faces[0].width, faces[0].height) == (10, 20, 100, 120)
    assert faces[0].keypoints == [(320.0, 120.0), (160.0, 480.0)]


def test_no_detections_gives_no_faces(settings, monkeypatch):
    _cache_model(settings, settings.face_model)
    monkeypatch.setattr(mp.tasks.vision.FaceDetector, "create_from_options", lambda options: FakeFaceTask([]))
    detector = FaceDetector(settings)
    detector.init({})

    assert detector.estimate_faces(np.zeros((48, 64, 3), dtype=np.uint8)) == []


def test_estimate_before_init_raises(settings):
    with pytest.raises(DetectorError):
        FaceDetector(settings).estimate_faces(np.zeros((48, 64, 3), dtype=np.uint8))

"""Tests for detector output conversion and face cropping."""

import numpy as np
import pytest

from facelive.detect import DetectedFace, crop_face, measurement_from_detection
from facelive.types import Angle, Rect


class TestMeasurementFromDetection:
    def test_no_face(self):
        m = measurement_from_detection(None, 1.5, 45)
        assert not m.present
        assert m.timestamp == 1.5
        assert m.frame_index == 45

    def test_converts_face(self):
        embedding = np.ones(8, dtype=np.float32)
        face = DetectedFace(bbox=(10, 20, 100, 120), confidence=0.9, yaw=12.0, pitch=-3.0,
                            embedding=embedding)
        m = measurement_from_detection(face, 0.5, 15)
        assert m.present
        assert m.bounds == Rect(10.0, 20.0, 100.0, 120.0)
        assert m.angle == Angle(12.0, -3.0)
        assert m.confidence == pytest.approx(0.9)
        assert m.template is embedding

    def test_mirrored(self):
        face = DetectedFace(bbox=(10, 20, 100, 120), confidence=0.9, yaw=12.0, pitch=-3.0)
        m = measurement_from_detection(face, 0.0, 0, image_width=640, mirrored=True)
        assert m.bounds == Rect(530.0, 20.0, 100.0, 120.0)
        assert m.angle == Angle(-12.0, -3.0)

    def test_mirroring_needs_width(self):
        face = DetectedFace(bbox=(0, 0, 10, 10), confidence=1.0)
        with pytest.raises(ValueError):
            measurement_from_detection(face, 0.0, 0, mirrored=True)


class TestCropFace:
    def test_expands_by_margin(self):
        image = np.zeros((200, 300, 3), dtype=np.uint8)
        crop = crop_face(image, Rect(100.0, 50.0, 50.0, 100.0))
        # 10% per side: 5 px horizontally, 10 px vertically
        assert crop.shape == (120, 60, 3)

    def test_clamps_to_image(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        crop = crop_face(image, Rect(-10.0, 80.0, 50.0, 50.0))
        assert crop.shape == (25, 45, 3)

    def test_outside_image(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        with pytest.raises(ValueError):
            crop_face(image, Rect(200.0, 200.0, 10.0, 10.0))

    def test_crop_is_a_copy(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        crop = crop_face(image, Rect(10.0, 10.0, 20.0, 20.0))
        crop[:] = 255
        assert image.max() == 0

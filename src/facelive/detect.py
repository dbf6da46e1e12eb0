"""Face detector interface.

Any backend that returns one face per image with a head pose and an
optional recognition embedding can drive a session. Implementations
should be swappable without changing session logic.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np

from facelive.types import Angle, FaceMeasurement, Rect


@dataclass
class DetectedFace:
    """Result from a face detection backend.

    Attributes:
        bbox: Bounding box (x, y, width, height) in pixels.
        confidence: Detection confidence [0, 1].
        yaw: Head yaw angle in degrees.
        pitch: Head pitch angle in degrees.
        embedding: Recognition embedding (e.g. ArcFace 512D, L2-normalized).
    """

    bbox: tuple[float, float, float, float]  # x, y, w, h in pixels
    confidence: float
    yaw: float = 0.0
    pitch: float = 0.0
    embedding: Optional[np.ndarray] = None


class FaceDetector(Protocol):
    """Protocol for face detection backends."""

    def initialize(self) -> None:
        """Initialize the backend and load models."""
        ...

    def detect(self, image: np.ndarray) -> Optional[DetectedFace]:
        """Detect the most prominent face in an image.

        Args:
            image: BGR image as numpy array (H, W, 3).

        Returns:
            The detected face, or None if there is no face.
        """
        ...

    def cleanup(self) -> None:
        """Release resources."""
        ...


def measurement_from_detection(
    face: Optional[DetectedFace],
    timestamp: float,
    frame_index: int,
    image_width: Optional[float] = None,
    mirrored: bool = False,
) -> FaceMeasurement:
    """Convert a detector result into a session measurement.

    With ``mirrored`` the frame is treated as a selfie view: bounds are
    flipped across the image width and yaw is negated, so LEFT keeps
    meaning the subject's left.

    Raises:
        ValueError: If mirroring is requested without an image width.
    """
    if face is None:
        return FaceMeasurement.absent(timestamp, frame_index)

    x, y, w, h = face.bbox
    bounds = Rect(float(x), float(y), float(w), float(h))
    yaw = float(face.yaw)
    if mirrored:
        if image_width is None:
            raise ValueError("image_width is required to mirror a detection")
        bounds = bounds.mirrored(image_width)
        yaw = -yaw

    return FaceMeasurement(
        timestamp=timestamp,
        frame_index=frame_index,
        bounds=bounds,
        angle=Angle(yaw=yaw, pitch=float(face.pitch)),
        confidence=float(face.confidence),
        template=face.embedding,
    )


def crop_face(image: np.ndarray, bounds: Rect, margin: float = 0.1) -> np.ndarray:
    """Crop a face from an image.

    The bounds grow by ``margin`` × size on every side and are clamped to
    the image.

    Raises:
        ValueError: If the clamped crop is empty.
    """
    img_h, img_w = image.shape[:2]
    pad_x = bounds.width * margin
    pad_y = bounds.height * margin

    x1 = max(0, int(round(bounds.x - pad_x)))
    y1 = max(0, int(round(bounds.y - pad_y)))
    x2 = min(img_w, int(round(bounds.right + pad_x)))
    y2 = min(img_h, int(round(bounds.bottom + pad_y)))

    if x2 <= x1 or y2 <= y1:
        raise ValueError(f"Face bounds {bounds} fall outside the {img_w}x{img_h} image")
    return image[y1:y2, x1:x2].copy()


__all__ = ["DetectedFace", "FaceDetector", "measurement_from_detection", "crop_face"]

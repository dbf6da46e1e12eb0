"""Frame sources and the detection producer.

The producer reads frames, runs the detector on a single background
worker and yields measurements in frame order:

    source.read() ──> detector (1 worker) ──> (FaceMeasurement, image)
                 \\
                  └─ dropped while a detection is pending (live sources)

The session itself never runs on the worker; it consumes the yielded
pairs on the caller's thread.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterator, Optional, Protocol, Tuple, Union

import numpy as np

from facelive.detect import FaceDetector, measurement_from_detection
from facelive.errors import SetupFailedError
from facelive.types import FaceMeasurement

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """Protocol for frame sources."""

    def read(self) -> Optional[np.ndarray]:
        """Next BGR frame, or None when the source is exhausted."""
        ...

    def release(self) -> None:
        """Release the device or file. Must be idempotent."""
        ...


class CameraSource:
    """Frame source backed by ``cv2.VideoCapture``.

    Args:
        device: Camera index or video file path.
        width: Requested frame width (camera only).
        height: Requested frame height (camera only).

    Raises:
        SetupFailedError: If the device cannot be opened.
    """

    def __init__(
        self,
        device: Union[int, str] = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ):
        import cv2

        self.device = device
        self._cap = cv2.VideoCapture(device)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise SetupFailedError(f"Cannot open video source: {device}")

        if width is not None:
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height is not None:
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        logger.debug("Opened video source %s", device)

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ret, frame = self._cap.read()
        if not ret:
            return None
        return frame

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("Released video source %s", self.device)

    def __enter__(self) -> "CameraSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


_Pending = Tuple[Future, float, int, np.ndarray]


class MeasurementProducer:
    """Runs face detection over a frame source.

    Args:
        source: Frame source; released when the producer closes.
        detector: Face detector called on the worker thread. Initialized
            when iteration starts and cleaned up on close.
        stop_event: Stops production when set (usually the session's
            ``closed_event``).
        mirrored: Treat frames as a selfie view (see
            ``measurement_from_detection``).
        drop_frames: Drop frames read while a detection is pending. With
            False every frame is detected in turn (file replay).
        clock: Timestamp source for frames.
    """

    def __init__(
        self,
        source: FrameSource,
        detector: FaceDetector,
        stop_event: Optional[threading.Event] = None,
        mirrored: bool = False,
        drop_frames: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.detector = detector
        self.stop_event = stop_event or threading.Event()
        self.mirrored = mirrored
        self.drop_frames = drop_frames
        self.clock = clock

        self.frame_count = 0
        self.dropped_frames = 0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False
        self._detector_ready = False

    def __iter__(self) -> Iterator[Tuple[FaceMeasurement, np.ndarray]]:
        if self._closed:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="facelive-detect",
        )
        pending: Optional[_Pending] = None
        try:
            initialize = getattr(self.detector, "initialize", None)
            if initialize is not None:
                initialize()
            self._detector_ready = True

            while not self.stop_event.is_set():
                image = self.source.read()
                if image is None:
                    logger.debug("Frame source exhausted after %d frames", self.frame_count)
                    break

                t = self.clock()
                frame_index = self.frame_count
                self.frame_count += 1

                if pending is not None:
                    if self.drop_frames and not pending[0].done():
                        self.dropped_frames += 1
                        continue
                    yield self._collect(pending)
                    pending = None
                    if self.stop_event.is_set():
                        break

                future = self._executor.submit(self.detector.detect, image)
                pending = (future, t, frame_index, image)

            if pending is not None and not self.stop_event.is_set():
                yield self._collect(pending)
        finally:
            self.close()

    def _collect(self, pending: _Pending) -> Tuple[FaceMeasurement, np.ndarray]:
        future, t, frame_index, image = pending
        try:
            face = future.result()
        except Exception as exc:
            logger.warning("Detector raised on frame %d: %s", frame_index, exc)
            face = None
        measurement = measurement_from_detection(
            face, t, frame_index,
            image_width=image.shape[1],
            mirrored=self.mirrored,
        )
        return measurement, image

    def close(self) -> None:
        """Stop the worker, clean up the detector and release the source.

        Idempotent. The detector is cleaned up only if it was initialized.
        """
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        if self._detector_ready:
            self._detector_ready = False
            cleanup = getattr(self.detector, "cleanup", None)
            if cleanup is not None:
                cleanup()
        self.source.release()
        if self.dropped_frames:
            logger.debug(
                "Producer closed: %d frames read, %d dropped",
                self.frame_count, self.dropped_frames,
            )

    def __enter__(self) -> "MeasurementProducer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["FrameSource", "CameraSource", "MeasurementProducer"]

"""Persistence for measurement traces and session results.

Traces are JSONL, one measurement per line, so a recorded session can be
replayed offline without a camera or detector:

    {"t": 0.033, "frame": 1, "bounds": [x, y, w, h], "yaw": -3.1,
     "pitch": 1.2, "confidence": 0.98, "template": [...]}

Absent faces have ``"bounds": null``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np

from facelive.config import SessionSettings
from facelive.detect import crop_face
from facelive.types import Angle, Capture, FaceMeasurement, Rect, SessionResult

logger = logging.getLogger(__name__)

_APP_VERSION = "0.1.0"


def save_trace(measurements: Iterable[FaceMeasurement], path: str | Path) -> int:
    """Write measurements to a JSONL trace.

    Returns:
        Number of measurements written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for m in measurements:
            f.write(json.dumps(_measurement_to_dict(m)) + "\n")
            count += 1
    return count


def load_trace(path: str | Path) -> List[FaceMeasurement]:
    """Read measurements from a JSONL trace.

    Blank lines are skipped.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a line is not a valid measurement record.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")

    measurements = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                measurements.append(_dict_to_measurement(json.loads(line)))
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: invalid trace record: {e}") from e
    return measurements


def save_result(
    result: SessionResult,
    out_dir: str | Path,
    settings: Optional[SessionSettings] = None,
) -> Path:
    """Save a session result and its face crops.

    Writes ``result.json`` and one JPEG crop per capture that carries an
    image.

    Returns:
        Path of the written ``result.json``.
    """
    import cv2

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    control_ids = {id(c) for c in result.control_captures}

    captures = []
    for i, capture in enumerate(result.captures):
        entry = _capture_to_dict(capture)
        entry["control"] = id(capture) in control_ids
        if capture.image is not None and capture.measurement.bounds is not None:
            filename = f"capture_{i:02d}_{capture.bearing.value}.jpg"
            crop = crop_face(capture.image, capture.measurement.bounds)
            if cv2.imwrite(str(out_dir / filename), crop):
                entry["image"] = filename
            else:
                logger.warning("Failed to write face crop %s", out_dir / filename)
        captures.append(entry)

    data = {
        "verdict": result.verdict.value,
        "passed": result.passed,
        "recognition_score": result.recognition_score,
        "failure": result.failure.value if result.failure is not None else None,
        "captures": captures,
        "_version": {
            "app": "facelive",
            "app_version": _APP_VERSION,
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
    }
    if settings is not None:
        data["_config"] = settings.to_dict()

    path = out_dir / "result.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info("Saved session result to %s", path)
    return path


def _measurement_to_dict(m: FaceMeasurement) -> dict:
    """Convert FaceMeasurement to a JSON-serializable dict."""
    bounds = m.bounds
    return {
        "t": m.timestamp,
        "frame": m.frame_index,
        "bounds": [bounds.x, bounds.y, bounds.width, bounds.height] if bounds is not None else None,
        "yaw": m.angle.yaw if m.angle is not None else None,
        "pitch": m.angle.pitch if m.angle is not None else None,
        "confidence": m.confidence,
        "template": np.asarray(m.template).tolist() if m.template is not None else None,
    }


def _dict_to_measurement(data: dict) -> FaceMeasurement:
    """Convert a trace record back to FaceMeasurement."""
    timestamp = float(data["t"])
    frame_index = int(data["frame"])
    if data.get("bounds") is None or data.get("yaw") is None:
        return FaceMeasurement.absent(timestamp, frame_index)

    x, y, w, h = data["bounds"]
    template = data.get("template")
    return FaceMeasurement(
        timestamp=timestamp,
        frame_index=frame_index,
        bounds=Rect(float(x), float(y), float(w), float(h)),
        angle=Angle(yaw=float(data["yaw"]), pitch=float(data.get("pitch") or 0.0)),
        confidence=float(data.get("confidence", 0.0)),
        template=np.array(template, dtype=np.float32) if template is not None else None,
    )


def _capture_to_dict(capture: Capture) -> dict:
    m = capture.measurement
    angle = capture.smoothed_angle or m.angle
    return {
        "bearing": capture.bearing.value,
        "t": m.timestamp,
        "frame": m.frame_index,
        "yaw": angle.yaw if angle is not None else None,
        "pitch": angle.pitch if angle is not None else None,
    }


__all__ = ["save_trace", "load_trace", "save_result"]

"""
Frame annotation: face boxes, landmark points and timing overlay.
"""

from __future__ import annotations

from typing import List, Sequence

import cv2
import numpy as np

from models.detection import FaceAnalysis
from ops.timing import Timer

# Colors (BGR)
COLOR_FACE = (0, 220, 0)
COLOR_LANDMARK = (0, 255, 255)
COLOR_TEXT = (255, 0, 0)

FONT = cv2.FONT_HERSHEY_TRIPLEX


def draw_faces(frame: np.ndarray, analyses: Sequence[FaceAnalysis], labels: Sequence[str]) -> np.ndarray:
    """Draw each face box with its label/confidence and landmark points."""
    for analysis in analyses:
        face = analysis.face
        x1, y1, x2, y2 = face.location.as_int_tuple()
        cv2.rectangle(frame, (x1, y1), (x2, y2), COLOR_FACE, 2)

        text = f"{face.label_text(labels)}: {face.confidence:.2f}"
        (tw, th), _ = cv2.getTextSize(text, FONT, 0.5, 1)
        top = max(y1, th + 6)
        cv2.rectangle(frame, (x1, top - th - 6), (x1 + tw + 4, top), COLOR_FACE, -1)
        cv2.putText(frame, text, (x1 + 2, top - 4), FONT, 0.5, (0, 0, 0), 1)

        if analysis.landmarks is not None:
            radius = max(1, int(analysis.roi.width / 100))
            for point in analysis.landmarks.to_pixels(analysis.roi):
                cv2.circle(frame, point, radius, COLOR_LANDMARK, -1)
    return frame


def timing_lines(timer: Timer, landmarks_enabled: bool) -> List[str]:
    lines = []
    if "total" in timer:
        lines.append(f"Total image throughput: {timer['total'].fps():.2f} fps")
    if "detection" in timer:
        stat = timer["detection"]
        lines.append(
            f"Face detection time: {stat.smoothed_duration:.2f} ms ({stat.fps():.2f} fps)"
        )
    if landmarks_enabled and "landmarks" in timer:
        stat = timer["landmarks"]
        lines.append(
            f"Facial landmarks estimation time: {stat.smoothed_duration:.2f} ms ({stat.fps():.2f} fps)"
        )
    return lines


def draw_timing(frame: np.ndarray, timer: Timer, landmarks_enabled: bool) -> np.ndarray:
    for i, line in enumerate(timing_lines(timer, landmarks_enabled)):
        cv2.putText(frame, line, (10, 25 + 20 * i), FONT, 0.5, COLOR_TEXT, 1)
    return frame


def annotate_frame(
    frame: np.ndarray,
    analyses: Sequence[FaceAnalysis],
    labels: Sequence[str],
    timer: Timer,
    landmarks_enabled: bool,
) -> np.ndarray:
    """Return a copy of `frame` with faces, landmarks and timings drawn on it."""
    out = frame.copy()
    draw_timing(out, timer, landmarks_enabled)
    draw_faces(out, analyses, labels)
    return out

"""
Detection models for face detection and landmark results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

# Number of (x, y) points produced by the landmarks regression network.
NUM_LANDMARK_POINTS = 35


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    def as_xywh(self) -> Tuple[int, int, int, int]:
        """Return as integer (x, y, width, height) tuple."""
        return (int(self.x1), int(self.y1), int(self.width), int(self.height))

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        """Create from (x, y, width, height) format."""
        return cls(x1=x, y1=y, x2=x + w, y2=y + h)

    def square_enlarged(self, coefficient: float) -> "BoundingBox":
        """
        Make the box square around its center and scale it by `coefficient`.

        Geometry is integer-valued: the side is the truncated product of the
        coefficient and the longer integer side, and the new origin is the
        integer center minus half the new side.
        """
        bb_width = int(self.width)
        bb_height = int(self.height)

        center_x = int(self.x1 + int(bb_width / 2))
        center_y = int(self.y1 + int(bb_height / 2))

        side = int(coefficient * max(bb_width, bb_height))

        x = center_x - int(side / 2)
        y = center_y - int(side / 2)
        return BoundingBox.from_xywh(x, y, side, side)

    def clamp(self, width: int, height: int) -> "BoundingBox":
        """
        Intersect with the frame rectangle (0, 0, width, height).

        The result may be empty when the box lies outside the frame.
        """
        x1 = max(self.x1, 0)
        y1 = max(self.y1, 0)
        x2 = min(self.x2, width)
        y2 = min(self.y2, height)
        if x2 <= x1 or y2 <= y1:
            return BoundingBox(0, 0, 0, 0)
        return BoundingBox(x1=x1, y1=y1, x2=x2, y2=y2)


@dataclass(frozen=True)
class FaceResult:
    """
    A single face proposal that passed the confidence threshold.

    Attributes:
        label: Class index reported by the detection network.
        confidence: Detection confidence score (0-1).
        location: Square, enlarged face box in frame pixels.
    """
    label: int
    confidence: float
    location: BoundingBox

    def label_text(self, labels: Sequence[str]) -> str:
        if 0 <= self.label < len(labels):
            return labels[self.label]
        return f"label #{self.label}"


@dataclass(frozen=True)
class FaceLandmarks:
    """
    Normalized landmark points for one face.

    Points are relative to the face ROI they were estimated on, in [0, 1].
    """
    points: np.ndarray  # (35, 2) float32

    @classmethod
    def from_flat(cls, values: Sequence[float]) -> "FaceLandmarks":
        """Create from the flat [x0, y0, x1, y1, ...] network output."""
        arr = np.asarray(values, dtype=np.float32).reshape(-1)
        if arr.size != NUM_LANDMARK_POINTS * 2:
            raise ValueError(
                f"Expected {NUM_LANDMARK_POINTS * 2} landmark values, got {arr.size}"
            )
        return cls(points=arr.reshape(NUM_LANDMARK_POINTS, 2))

    def to_pixels(self, roi: BoundingBox) -> List[Tuple[int, int]]:
        """Map normalized points to integer frame coordinates inside `roi`."""
        out: List[Tuple[int, int]] = []
        for px, py in self.points:
            x = int(roi.x1 + px * roi.width)
            y = int(roi.y1 + py * roi.height)
            out.append((x, y))
        return out


@dataclass
class FaceAnalysis:
    """A face result paired with its clamped ROI and optional landmarks."""
    face: FaceResult
    roi: BoundingBox
    landmarks: Optional[FaceLandmarks] = None

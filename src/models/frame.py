"""
FrameData model for frames read from the demo input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .detection import BoundingBox


@dataclass
class FrameData:
    """
    Metadata and payload for a single input frame.

    Attributes:
        frame: The raw frame data as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was read.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def crop(self, box: BoundingBox) -> np.ndarray:
        """
        Return a view of the frame inside `box`.

        The box is clamped to the frame first; an empty box yields an empty array.
        """
        x1, y1, x2, y2 = box.clamp(self.width, self.height).as_int_tuple()
        return self.frame[y1:y2, x1:x2]

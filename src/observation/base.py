"""
ObservationSource interface for pluggable video/image sources.

The demo loop works with any source implementing this contract:
- USB cameras
- RTSP/IP cameras
- Video and image files
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Identifier for this source, used in logs and FrameData.
        resolution: Target resolution as (width, height). None = use source default.
        fps: Target frames per second. None = use source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Abstract base class for observation sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to initialize the source
        3. Call read() repeatedly to get frames
        4. Call close() to release resources

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def is_live(self) -> bool:
        """Live sources may recover after a failed read; finite ones end the stream."""
        return True

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Open the source. Must be called before read().

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Read the next frame.

        Returns None when no frame is available (end of file, camera error).
        """

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data

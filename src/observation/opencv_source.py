"""
OpenCV-based observation source.

Supports:
- USB cameras (device_id as int, a digit string, or "cam" for camera 0)
- RTSP/IP cameras (device_id as URL)
- Video and image files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig
from .rtsp_utils import sanitize_url

CAMERA_ALIAS = "cam"


def resolve_device_id(device_id: Union[int, str]) -> Union[int, str]:
    """Map the "cam" alias and digit strings to camera indices."""
    if isinstance(device_id, str):
        value = device_id.strip()
        if value == CAMERA_ALIAS:
            return 0
        if value.isdigit():
            return int(value)
        return value
    return device_id


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index, "cam", RTSP URL or file path.
        rtsp_transport: Transport protocol for RTSP ("tcp" or "udp").
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        max_retries: Attempts to open the device before giving up.
        swap_rb: Swap R/B channels (fixes RGB vs BGR issues).
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Flip frame horizontally.
        flip_vertical: Flip frame vertically.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 3
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "input") -> "OpenCVSourceConfig":
        """Adapter: Create OpenCVSourceConfig from the `camera` config dict."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=resolve_device_id(camera_cfg.get("device_id", 0)),
            rtsp_transport=camera_cfg.get("rtsp_transport", "tcp"),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            swap_rb=camera_cfg.get("swap_rb", False),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(ObservationSource):
    """
    cv2.VideoCapture wrapped as an ObservationSource.

    Files end the stream when exhausted; cameras are reopened after a read
    failure, at most three times in a row.

    Example:
        config = OpenCVSourceConfig(device_id="cam", resolution=(1280, 720))
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._consecutive_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return resolve_device_id(self._opencv_config.device_id)

    @property
    def is_rtsp(self) -> bool:
        return isinstance(self.device_id, str) and (
            self.device_id.startswith("rtsp://") or
            self.device_id.startswith("rtsps://")
        )

    @property
    def is_file(self) -> bool:
        return (
            isinstance(self.device_id, str) and
            not self.is_rtsp and
            os.path.exists(self.device_id)
        )

    @property
    def is_live(self) -> bool:
        return not self.is_file

    def open(self) -> None:
        if self._is_open:
            return

        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={sanitize_url(self.device_id)}, resolution={self._opencv_config.resolution}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying initialization (attempt {retry_count + 1}/"
                f"{self._opencv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        if self.is_rtsp:
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = (
                f"rtsp_transport;{self._opencv_config.rtsp_transport}"
            )

        self._cap = cv2.VideoCapture(self.device_id)

        if not self._cap.isOpened():
            # A missing file will not appear on retry.
            if isinstance(self.device_id, str) and "://" not in self.device_id and not self.is_file:
                raise RuntimeError(f"Cannot open input file or camera: {self.device_id}")
            if retry_count < self._opencv_config.max_retries - 1:
                logging.warning(f"Failed to open device {sanitize_url(self.device_id)}, retrying...")
                return self._initialize(retry_count + 1)
            raise RuntimeError(
                f"Cannot open input file or camera: {sanitize_url(self.device_id)} after "
                f"{self._opencv_config.max_retries} attempts"
            )

        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)
            logging.info(
                f"Camera actual settings - Resolution: ({self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)}x"
                f"{self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)}), FPS: {self._cap.get(cv2.CAP_PROP_FPS)}"
            )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()

        if not ret or frame is None:
            self._consecutive_failures += 1

            if self.is_file:
                logging.info("End of input file reached")
                return None

            if self._consecutive_failures > 3:
                logging.error("Too many consecutive read failures")
                return None

            logging.warning(
                f"Failed to read frame (failures: {self._consecutive_failures}), reinitializing..."
            )
            try:
                self._initialize()
            except RuntimeError as e:
                logging.error(f"Reinitialization failed: {e}")
                return None
            ret, frame = self._cap.read()
            if not ret or frame is None:
                return None

        self._consecutive_failures = 0
        frame = self._apply_transforms(frame)
        self._frame_index += 1

        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        cfg = self._opencv_config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal or cfg.flip_vertical:
            if cfg.flip_horizontal and cfg.flip_vertical:
                flip_code = -1
            elif cfg.flip_horizontal:
                flip_code = 1
            else:
                flip_code = 0
            frame = cv2.flip(frame, flip_code)

        if cfg.swap_rb:
            frame = frame[..., ::-1].copy()

        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: source_id={self.source_id}")


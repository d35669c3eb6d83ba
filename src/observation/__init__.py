"""
Observation layer for pluggable video/image sources.

This layer abstracts the source of frames (camera, video or image file,
RTSP stream) from the demo loop. Each source implements the
ObservationSource interface and returns FrameData objects.
"""

from typing import Any, Dict

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, resolve_device_id
from .rtsp_utils import inject_rtsp_credentials, sanitize_url


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "input") -> ObservationSource:
    """Build the observation source selected by `camera.backend`."""
    backend = camera_cfg.get("backend", "opencv")
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    inject_rtsp_credentials(camera_cfg)
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
    "inject_rtsp_credentials",
    "resolve_device_id",
    "sanitize_url",
]

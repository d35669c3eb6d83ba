"""
Typed models for the face landmarks demo.

These models provide strong typing for frames, detection results and
configuration. Use the adapter methods to convert from raw dicts/arrays.
"""

from .frame import FrameData
from .detection import (
    BoundingBox,
    FaceAnalysis,
    FaceLandmarks,
    FaceResult,
    NUM_LANDMARK_POINTS,
)
from .config import (
    Config,
    CameraConfig,
    FaceDetectionConfig,
    LandmarksConfig,
    InferenceConfig,
    DisplayConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "FaceAnalysis",
    "FaceLandmarks",
    "FaceResult",
    "NUM_LANDMARK_POINTS",
    # Config
    "Config",
    "CameraConfig",
    "FaceDetectionConfig",
    "LandmarksConfig",
    "InferenceConfig",
    "DisplayConfig",
    "WebConfig",
]

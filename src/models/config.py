"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Input configuration (camera index, video/image path or RTSP URL)."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    secrets_file: Optional[str] = None
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            secrets_file=d.get("secrets_file"),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0),
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "secrets_file": self.secrets_file,
            "resolution": self.resolution,
            "fps": self.fps,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class FaceDetectionConfig:
    """Face detection network configuration."""
    model: str = ""
    device: str = "CPU"
    threshold: float = 0.5
    async_mode: bool = False
    raw_output: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FaceDetectionConfig":
        return cls(
            model=d.get("model", "") or "",
            device=d.get("device", "CPU"),
            threshold=float(d.get("threshold", 0.5)),
            async_mode=d.get("async", False),
            raw_output=d.get("raw_output", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "device": self.device,
            "threshold": self.threshold,
            "async": self.async_mode,
            "raw_output": self.raw_output,
        }


@dataclass
class LandmarksConfig:
    """Facial landmarks network configuration."""
    model: str = ""
    device: str = "CPU"
    max_batch: int = 16
    dynamic_batch: bool = False
    async_mode: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LandmarksConfig":
        return cls(
            model=d.get("model", "") or "",
            device=d.get("device", "CPU"),
            max_batch=int(d.get("max_batch", 16)),
            dynamic_batch=d.get("dynamic_batch", False),
            async_mode=d.get("async", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "device": self.device,
            "max_batch": self.max_batch,
            "dynamic_batch": self.dynamic_batch,
            "async": self.async_mode,
        }


@dataclass
class InferenceConfig:
    """Engine-wide settings."""
    cpu_extension: Optional[str] = None
    perf_counts: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InferenceConfig":
        return cls(
            cpu_extension=d.get("cpu_extension") or None,
            perf_counts=d.get("perf_counts", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cpu_extension": self.cpu_extension,
            "perf_counts": self.perf_counts,
        }


@dataclass
class DisplayConfig:
    """Rendering and output configuration."""
    show: bool = True
    wait_for_key: bool = True
    record: bool = False
    output_dir: str = "output/video"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            show=d.get("show", True),
            wait_for_key=d.get("wait_for_key", True),
            record=d.get("record", False),
            output_dir=d.get("output_dir", "output/video"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "show": self.show,
            "wait_for_key": self.wait_for_key,
            "record": self.record,
            "output_dir": self.output_dir,
        }


@dataclass
class WebConfig:
    """Live preview web server configuration."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", False),
            host=d.get("host", "0.0.0.0"),
            port=int(d.get("port", 5000)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "host": self.host,
            "port": self.port,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    face_detection: FaceDetectionConfig = field(default_factory=FaceDetectionConfig)
    landmarks: LandmarksConfig = field(default_factory=LandmarksConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/face_landmarks.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            face_detection=FaceDetectionConfig.from_dict(d.get("face_detection", {}) or {}),
            landmarks=LandmarksConfig.from_dict(d.get("landmarks", {}) or {}),
            inference=InferenceConfig.from_dict(d.get("inference", {}) or {}),
            display=DisplayConfig.from_dict(d.get("display", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/face_landmarks.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "face_detection": self.face_detection.to_dict(),
            "landmarks": self.landmarks.to_dict(),
            "inference": self.inference.to_dict(),
            "display": self.display.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }

"""
Face detection and facial landmarks demo.

Runs a face detection network on every input frame, estimates facial
landmarks for each detected face and renders the results.

Usage:
    python src/main.py --config config/config.yaml \
        -m models/face-detection-adas-0001.xml \
        -m_lm models/facial-landmarks-35-adas-0002.xml -i cam

Arguments:
    --config: Path to configuration file
    -i/--input: Camera index, "cam", video/image file or RTSP URL
    -m/--model: Face detection model (.xml); required
    -m_lm/--landmarks-model: Facial landmarks model (.xml); empty disables landmarks
    --async: Submit requests asynchronously
    --web: Serve a live preview on the configured port
"""

import os
import sys
import argparse
import logging
import threading
import time
from typing import Dict, Any, Tuple, Optional

import yaml
import uvicorn

from detection import FaceDetection, FacialLandmarksDetection, load
from inference.openvino_backend import OpenVinoBackend
from models.config import Config
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config
from runtime.context import RuntimeContext
from web.app import create_app
from web.state import state as web_state


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Write command-line values that were given into the config dict."""
    camera = config.setdefault("camera", {})
    face = config.setdefault("face_detection", {})
    landmarks = config.setdefault("landmarks", {})
    inference = config.setdefault("inference", {})
    display = config.setdefault("display", {})
    web = config.setdefault("web", {})

    if args.input is not None:
        camera["device_id"] = args.input
    if args.model is not None:
        face["model"] = args.model
    if args.landmarks_model is not None:
        landmarks["model"] = args.landmarks_model
    if args.device is not None:
        face["device"] = args.device
    if args.landmarks_device is not None:
        landmarks["device"] = args.landmarks_device
    if args.landmarks_batch is not None:
        landmarks["max_batch"] = args.landmarks_batch
    if args.landmarks_dynamic_batch:
        landmarks["dynamic_batch"] = True
    if args.async_mode:
        face["async"] = True
        landmarks["async"] = True
    if args.threshold is not None:
        face["threshold"] = args.threshold
    if args.raw:
        face["raw_output"] = True
    if args.perf_counts:
        inference["perf_counts"] = True
    if args.cpu_extension is not None:
        inference["cpu_extension"] = args.cpu_extension
    if args.no_show:
        display["show"] = False
    if args.no_wait:
        display["wait_for_key"] = False
    if args.record:
        display["record"] = True
    if args.web:
        web["enabled"] = True
    return config


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'face_detection', 'landmarks', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera', {})
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (\"cam\", path or URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"
    if 'resolution' in camera:
        if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    # Validate face detection settings
    face = config.get('face_detection', {}) or {}
    if not isinstance(face.get('model'), str) or not face.get('model'):
        return False, "face_detection.model is required (use -m)"
    if not isinstance(face.get('device', 'CPU'), str):
        return False, "face_detection.device must be a string"
    threshold = face.get('threshold', 0.5)
    if not isinstance(threshold, (int, float)) or not (0 <= threshold <= 1):
        return False, "face_detection.threshold must be between 0 and 1"

    # Validate landmarks settings
    landmarks = config.get('landmarks', {}) or {}
    if landmarks.get('model') is not None and not isinstance(landmarks.get('model'), str):
        return False, "landmarks.model must be a string"
    if not isinstance(landmarks.get('device', 'CPU'), str):
        return False, "landmarks.device must be a string"
    max_batch = landmarks.get('max_batch', 16)
    if not isinstance(max_batch, int) or max_batch <= 0:
        return False, "landmarks.max_batch must be a positive integer"

    # Validate web settings
    web = config.get('web', {}) or {}
    port = web.get('port', 5000)
    if not isinstance(port, int) or not (0 < port < 65536):
        return False, "web.port must be an integer between 1 and 65535"

    # Validate log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Face Detection and Facial Landmarks Demo')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('-i', '--input', type=str, default=None,
                        help='Camera index, "cam", video/image file or RTSP URL')
    parser.add_argument('-m', '--model', type=str, default=None,
                        help='Face detection model (.xml)')
    parser.add_argument('-m_lm', '--landmarks-model', type=str, default=None,
                        help='Facial landmarks model (.xml)')
    parser.add_argument('-d', '--device', type=str, default=None,
                        help='Device for face detection (CPU, GPU, NPU, ...)')
    parser.add_argument('-d_lm', '--landmarks-device', type=str, default=None,
                        help='Device for facial landmarks estimation')
    parser.add_argument('-n_lm', '--landmarks-batch', type=int, default=None,
                        help='Maximum number of faces processed by landmarks per frame')
    parser.add_argument('-dyn_lm', '--landmarks-dynamic-batch', action='store_true',
                        help='Run landmarks on exactly the detected number of faces')
    parser.add_argument('--async', dest='async_mode', action='store_true',
                        help='Submit inference requests asynchronously')
    parser.add_argument('-t', '--threshold', type=float, default=None,
                        help='Face detection confidence threshold')
    parser.add_argument('-r', '--raw', action='store_true',
                        help='Print raw detection output')
    parser.add_argument('-pc', '--perf-counts', action='store_true',
                        help='Log per-layer performance counts at exit')
    parser.add_argument('-l', '--cpu-extension', type=str, default=None,
                        help='Custom layers extension library')
    parser.add_argument('--no-show', action='store_true',
                        help='Do not show processed frames')
    parser.add_argument('--no-wait', action='store_true',
                        help='Do not wait for a key press before exit')
    parser.add_argument('--record', action='store_true',
                        help='Record annotated video output')
    parser.add_argument('--web', action='store_true',
                        help='Serve a live preview over HTTP')
    return parser


def start_web_server(config: Dict[str, Any]) -> threading.Thread:
    web_cfg = config.get('web', {}) or {}
    host = web_cfg.get('host', '0.0.0.0')
    port = int(web_cfg.get('port', 5000))

    web_state.update_system_stats({"start_time": time.time()})

    def run_web_app():
        uvicorn.run(
            create_app(),
            host=host,
            port=port,
            log_level="info",
        )

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Web preview started on port {port}")
    return web_thread


def create_detectors(config: Dict[str, Any]) -> Tuple[FaceDetection, FacialLandmarksDetection]:
    cfg = Config.from_dict(config)
    face = FaceDetection(
        cfg.face_detection.model,
        cfg.face_detection.device,
        max_batch=1,
        is_batch_dynamic=False,
        is_async=cfg.face_detection.async_mode,
        detection_threshold=cfg.face_detection.threshold,
        do_raw_output_messages=cfg.face_detection.raw_output,
    )
    landmarks = FacialLandmarksDetection(
        cfg.landmarks.model,
        cfg.landmarks.device,
        max_batch=cfg.landmarks.max_batch,
        is_batch_dynamic=cfg.landmarks.dynamic_batch,
        is_async=cfg.landmarks.async_mode,
    )
    return face, landmarks


def main():
    """Main application function."""
    args = build_parser().parse_args()

    config = load_config(args.config)
    apply_cli_overrides(config, args)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Face Landmarks Demo")

    try:
        inference_cfg = config.get('inference', {}) or {}
        backend = OpenVinoBackend(perf_counts=bool(inference_cfg.get('perf_counts', False)))
        if inference_cfg.get('cpu_extension'):
            backend.add_extension(inference_cfg['cpu_extension'])
        logging.info(f"Available devices: {', '.join(backend.available_devices)}")

        face, landmarks = create_detectors(config)
        load(face, backend)
        load(landmarks, backend, enable_dynamic_batch=landmarks.is_batch_dynamic)

        web_enabled = bool((config.get('web', {}) or {}).get('enabled', False))
        if web_enabled:
            start_web_server(config)

        ctx = RuntimeContext(
            config=config,
            face_detector=face,
            landmarks_detector=landmarks,
            web_state=web_state if web_enabled else None,
        )
        engine = create_engine_from_config(config, ctx)
        engine.run()
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except Exception as e:
        logging.exception(f"Fatal error: {e}")
        sys.exit(1)

    logging.info("Execution successful")


if __name__ == "__main__":
    main()

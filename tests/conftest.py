"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from inference.backend import NetworkInfo, PerfCount, PortInfo  # noqa: E402


class FakeRequest:
    """In-memory infer request recording every call."""

    def __init__(self, outputs=None):
        self.inputs = {}
        self.outputs = outputs or {}
        self.calls = []

    def set_input(self, name, data):
        self.inputs[name] = np.array(data, copy=True)

    def infer(self):
        self.calls.append("infer")

    def start_async(self):
        self.calls.append("start_async")

    def wait(self):
        self.calls.append("wait")

    def get_output(self, name):
        return self.outputs[name]

    def get_performance_counts(self):
        return [
            PerfCount("conv1", "EXECUTED", "Convolution", "jit_avx2_FP32", 120, 118),
            PerfCount("relu1", "OPTIMIZED_OUT", "ReLU", "undef", 0, 0),
        ]


class FakeExecutableNetwork:
    def __init__(self, request):
        self.request = request
        self.created = 0

    def create_infer_request(self):
        self.created += 1
        return self.request


class FakeNetwork:
    """Mutable network description with call recording."""

    def __init__(self, inputs, outputs):
        self.inputs = inputs
        self.outputs = outputs
        self.batch_size = None
        self.dynamic_batch = None
        self.u8_inputs = []
        self.f32_outputs = []

    def info(self):
        return NetworkInfo(
            model_path="model.xml",
            inputs=self.inputs,
            outputs=self.outputs,
            batch_size=self.batch_size or 1,
        )

    def set_batch_size(self, batch_size):
        self.batch_size = batch_size

    def enable_dynamic_batch(self, max_batch):
        self.dynamic_batch = max_batch

    def set_input_precision_u8(self, name):
        self.u8_inputs.append(name)

    def set_output_precision_f32(self, name):
        self.f32_outputs.append(name)


class FakeBackend:
    def __init__(self, network, request=None):
        self.network = network
        self.request = request or FakeRequest()
        self.read_paths = []
        self.loaded = []

    def read_network(self, model_path):
        self.read_paths.append(model_path)
        return self.network

    def load_network(self, network, device, config=None):
        self.loaded.append((network, device, config))
        return FakeExecutableNetwork(self.request)

    def add_extension(self, library_path):
        pass


def face_detection_network(num_classes=2, out_shape=(1, 1, 200, 7), layer_type="DetectionOutput",
                           params=None):
    params = {"num_classes": num_classes} if params is None else params
    return FakeNetwork(
        inputs=[PortInfo(name="data", shape=(1, 3, 384, 672))],
        outputs=[
            PortInfo(
                name="detection_out",
                shape=out_shape,
                layer_name="detection_out",
                layer_type=layer_type,
                layer_params=params,
            )
        ],
    )


def landmarks_network(max_batch=16, layer_name="align_fc3", layer_type="MatMul", out_size=70,
                      input_layer_type=""):
    return FakeNetwork(
        inputs=[PortInfo(name="data", shape=(max_batch, 3, 60, 60))],
        outputs=[
            PortInfo(
                name="align_fc3",
                shape=(max_batch, out_size),
                layer_name=layer_name,
                layer_type=layer_type,
                input_layer_type=input_layer_type,
            )
        ],
    )


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: "cam"
  resolution: [640, 480]
  fps: 30

face_detection:
  model: "models/face-detection-adas-0001.xml"
  device: "CPU"
  threshold: 0.5

landmarks:
  model: ""
  device: "CPU"
  max_batch: 16

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "face_detection": {
            "model": "models/face-detection-adas-0001.xml",
            "device": "CPU",
            "threshold": 0.5,
            "async": False,
            "raw_output": False,
        },
        "landmarks": {
            "model": "models/facial-landmarks-35-adas-0002.xml",
            "device": "CPU",
            "max_batch": 16,
            "dynamic_batch": False,
            "async": False,
        },
        "inference": {"cpu_extension": None, "perf_counts": False},
        "display": {"show": False, "wait_for_key": False, "record": False},
        "web": {"enabled": False, "host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def frame():
    """A 480x640 BGR frame with a gradient so crops differ."""
    row = np.arange(640, dtype=np.uint8)
    img = np.repeat(row[None, :], 480, axis=0)
    return np.stack([img, img, img], axis=-1)

"""
Detection interfaces.

BaseDetection owns one network and one inference request. Subclasses
validate the network in `read()`, fill the request in `enqueue()` and
interpret outputs after `submit_request()`/`wait()`.

Requests run synchronously by default; in async mode `submit_request()`
returns immediately and `wait()` blocks until results are ready.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import cv2
import numpy as np

from inference.backend import (
    ExecutableNetwork,
    InferenceBackend,
    InferRequest,
    Network,
    NetworkValidationError,
    PortInfo,
)
from ops.logging import format_performance_counts


def mat_to_blob(image: np.ndarray, input_shape: Sequence[int]) -> np.ndarray:
    """
    Resize a BGR image to the network input and return it planar (C, H, W) as uint8.

    `input_shape` is the NCHW network input shape.
    """
    _, channels, height, width = (int(v) for v in input_shape[:4])
    if image.shape[0] != height or image.shape[1] != width:
        image = cv2.resize(image, (width, height))
    if image.ndim == 2:
        image = image[:, :, None]
    blob = np.transpose(image[:, :, :channels], (2, 0, 1))
    return np.ascontiguousarray(blob, dtype=np.uint8)


class BaseDetection:
    """
    Common state and request handling for one network.

    Attributes:
        topo_name: Human-readable network name used in log messages.
        model_path: Path to the model; empty disables the detector.
        device: Device the network is compiled for (e.g. "CPU", "GPU").
        max_batch: Batch size the network is read with.
        is_batch_dynamic: Run on exactly the enqueued batch instead of max_batch.
        is_async: Submit without blocking; `wait()` collects the result.
    """

    def __init__(
        self,
        topo_name: str,
        model_path: str,
        device: str,
        max_batch: int = 1,
        is_batch_dynamic: bool = False,
        is_async: bool = False,
    ):
        self.topo_name = topo_name
        self.model_path = model_path or ""
        self.device = device
        self.max_batch = max_batch
        self.is_batch_dynamic = is_batch_dynamic
        self.is_async = is_async

        self.net: Optional[ExecutableNetwork] = None
        self.request: Optional[InferRequest] = None
        self.input_name: str = ""
        self.input_shape: Sequence[int] = ()

        self._enabling_checked = False
        self._enabled = False

        if is_async:
            logging.info(f"Use async mode for {topo_name}")

    @property
    def enabled(self) -> bool:
        if not self._enabling_checked:
            self._enabled = bool(self.model_path)
            if not self._enabled:
                logging.info(f"{self.topo_name} DISABLED")
            self._enabling_checked = True
        return self._enabled

    def read(self, backend: InferenceBackend) -> Network:
        """Read and validate the network. Raises NetworkValidationError."""
        raise NotImplementedError

    def _ensure_request(self) -> InferRequest:
        if self.request is None:
            if self.net is None:
                raise RuntimeError(f"{self.topo_name} network is not loaded")
            self.request = self.net.create_infer_request()
        return self.request

    def submit_request(self) -> None:
        if not self.enabled or self.request is None:
            return
        if self.is_async:
            self.request.start_async()
        else:
            self.request.infer()

    def wait(self) -> None:
        if not self.enabled or self.request is None or not self.is_async:
            return
        self.request.wait()

    def print_performance_counts(self) -> None:
        if not self.enabled or self.request is None:
            return
        logging.info(f"Performance counts for {self.topo_name}")
        logging.info("\n" + format_performance_counts(self.request.get_performance_counts()))

    def _single_input(self, ports: Sequence[PortInfo], what: str) -> PortInfo:
        if len(ports) != 1:
            raise NetworkValidationError(f"{what} network should have only one input")
        return ports[0]

    def _single_output(self, ports: Sequence[PortInfo], what: str) -> PortInfo:
        if len(ports) != 1:
            raise NetworkValidationError(f"{what} network should have only one output")
        return ports[0]


def load(
    detector: BaseDetection,
    backend: InferenceBackend,
    enable_dynamic_batch: bool = False,
    config: Optional[Dict[str, str]] = None,
) -> None:
    """
    Read, validate and compile the detector's network on its device.

    Disabled detectors are left untouched.
    """
    if not detector.enabled:
        return
    network = detector.read(backend)
    if enable_dynamic_batch:
        network.enable_dynamic_batch(detector.max_batch)
    detector.net = backend.load_network(network, detector.device, config)
    detector.request = None

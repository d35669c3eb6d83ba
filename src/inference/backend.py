"""
Inference backend interface.

Detectors only see these types; the engine-specific code lives in the
backend implementations. Network metadata is described with plain
dataclasses so validation logic can run without an engine installed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

import numpy as np


class NetworkValidationError(RuntimeError):
    """Raised when a network's inputs/outputs do not match what a detector expects."""


@dataclass(frozen=True)
class PortInfo:
    """
    One network input or output.

    Attributes:
        name: Tensor name used to bind/read data.
        shape: Static shape (batch first).
        layer_name: Name of the layer producing this output ("" for inputs).
        layer_type: Type of the producing layer, e.g. "DetectionOutput".
        layer_params: Attributes of the producing layer.
        input_layer_type: Type of the node feeding the producing layer's first input.
    """
    name: str
    shape: Tuple[int, ...]
    layer_name: str = ""
    layer_type: str = ""
    layer_params: Dict[str, Any] = field(default_factory=dict)
    input_layer_type: str = ""


@dataclass
class NetworkInfo:
    """Inputs and outputs of a read (not yet compiled) network."""
    model_path: str
    inputs: List[PortInfo]
    outputs: List[PortInfo]
    batch_size: int = 1


@dataclass(frozen=True)
class PerfCount:
    """Per-layer profiling entry. Times are in microseconds."""
    layer_name: str
    status: str
    layer_type: str
    exec_type: str
    real_time_us: int
    cpu_time_us: int


class InferRequest(Protocol):
    def set_input(self, name: str, data: np.ndarray) -> None:
        ...

    def infer(self) -> None:
        ...

    def start_async(self) -> None:
        ...

    def wait(self) -> None:
        ...

    def get_output(self, name: str) -> np.ndarray:
        ...

    def get_performance_counts(self) -> List[PerfCount]:
        ...


class ExecutableNetwork(Protocol):
    def create_infer_request(self) -> InferRequest:
        ...


class Network(Protocol):
    def info(self) -> NetworkInfo:
        ...

    def set_batch_size(self, batch_size: int) -> None:
        ...

    def enable_dynamic_batch(self, max_batch: int) -> None:
        ...

    def set_input_precision_u8(self, name: str) -> None:
        ...

    def set_output_precision_f32(self, name: str) -> None:
        ...


class InferenceBackend(Protocol):
    def read_network(self, model_path: str) -> Network:
        ...

    def load_network(
        self,
        network: Network,
        device: str,
        config: Optional[Dict[str, str]] = None,
    ) -> ExecutableNetwork:
        ...

    def add_extension(self, library_path: str) -> None:
        ...


def model_sidecar_path(model_path: str, suffix: str) -> str:
    """Return `model_path` with its extension replaced by `suffix` (e.g. ".bin")."""
    return os.path.splitext(model_path)[0] + suffix

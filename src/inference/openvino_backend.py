"""
OpenVINO Runtime inference backend.

One `ov.Core` instance serves every device, so each device plugin is loaded
once no matter how many networks are compiled on it.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Set

import numpy as np

from .backend import (
    ExecutableNetwork,
    InferenceBackend,
    InferRequest,
    Network,
    NetworkInfo,
    PerfCount,
    PortInfo,
    model_sidecar_path,
)


def _import_openvino():
    try:
        import openvino as ov  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "OpenVINO Runtime is not installed. Install with `pip install openvino`."
        ) from e
    return ov


def _static_shape(partial_shape) -> tuple:
    return tuple(
        d.get_length() if d.is_static else -1
        for d in partial_shape
    )


class OpenVinoRequest(InferRequest):
    def __init__(self, request, ov):
        self._request = request
        self._ov = ov

    def set_input(self, name: str, data: np.ndarray) -> None:
        self._request.set_tensor(name, self._ov.Tensor(np.ascontiguousarray(data)))

    def infer(self) -> None:
        self._request.infer()

    def start_async(self) -> None:
        self._request.start_async()

    def wait(self) -> None:
        self._request.wait()

    def get_output(self, name: str) -> np.ndarray:
        return self._request.get_tensor(name).data

    def get_performance_counts(self) -> List[PerfCount]:
        out: List[PerfCount] = []
        for info in self._request.profiling_info:
            status = getattr(info.status, "name", str(info.status))
            out.append(
                PerfCount(
                    layer_name=info.node_name,
                    status=status,
                    layer_type=info.node_type,
                    exec_type=info.exec_type,
                    real_time_us=int(info.real_time.total_seconds() * 1e6),
                    cpu_time_us=int(info.cpu_time.total_seconds() * 1e6),
                )
            )
        return out


class OpenVinoExecutableNetwork(ExecutableNetwork):
    def __init__(self, compiled_model, ov):
        self._compiled = compiled_model
        self._ov = ov

    def create_infer_request(self) -> OpenVinoRequest:
        return OpenVinoRequest(self._compiled.create_infer_request(), self._ov)


class OpenVinoNetwork(Network):
    """
    A read `ov.Model` plus pending I/O changes.

    Precision and dynamic-batch changes are collected and applied once in
    `build()`, right before compilation.
    """

    def __init__(self, model, model_path: str, ov):
        self._model = model
        self._ov = ov
        self.model_path = model_path
        self._batch_size = 1
        self._u8_inputs: Set[str] = set()
        self._f32_outputs: Set[str] = set()
        self._dynamic_batch: Optional[int] = None

    def info(self) -> NetworkInfo:
        inputs = [
            PortInfo(name=port.get_any_name(), shape=_static_shape(port.get_partial_shape()))
            for port in self._model.inputs
        ]
        outputs: List[PortInfo] = []
        for port in self._model.outputs:
            result_node = port.get_node()
            producer = result_node.input_value(0).get_node()
            upstream = producer.input_value(0).get_node() if producer.get_input_size() else None
            outputs.append(
                PortInfo(
                    name=port.get_any_name(),
                    shape=_static_shape(port.get_partial_shape()),
                    layer_name=producer.get_friendly_name(),
                    layer_type=producer.get_type_name(),
                    layer_params=dict(producer.get_attributes()),
                    input_layer_type=upstream.get_type_name() if upstream is not None else "",
                )
            )
        return NetworkInfo(
            model_path=self.model_path,
            inputs=inputs,
            outputs=outputs,
            batch_size=self._batch_size,
        )

    def set_batch_size(self, batch_size: int) -> None:
        # Inputs are NCHW; batch is the leading dimension.
        new_shapes = {}
        for port in self._model.inputs:
            dims = list(port.get_partial_shape())
            dims[0] = self._ov.Dimension(batch_size)
            new_shapes[port.get_any_name()] = self._ov.PartialShape(dims)
        self._model.reshape(new_shapes)
        self._batch_size = batch_size

    def enable_dynamic_batch(self, max_batch: int) -> None:
        self._dynamic_batch = max_batch

    def set_input_precision_u8(self, name: str) -> None:
        self._u8_inputs.add(name)

    def set_output_precision_f32(self, name: str) -> None:
        self._f32_outputs.add(name)

    def build(self):
        """Apply pending changes and return the model ready for compilation."""
        ov = self._ov
        model = self._model

        if self._dynamic_batch is not None:
            new_shapes = {}
            for port in model.inputs:
                dims = list(port.get_partial_shape())
                dims[0] = ov.Dimension(1, self._dynamic_batch)
                new_shapes[port.get_any_name()] = ov.PartialShape(dims)
            model.reshape(new_shapes)
            logging.info(f"Dynamic batch enabled (1..{self._dynamic_batch}) for {self.model_path}")

        if self._u8_inputs or self._f32_outputs:
            from openvino.preprocess import PrePostProcessor  # type: ignore

            ppp = PrePostProcessor(model)
            for name in sorted(self._u8_inputs):
                ppp.input(name).tensor().set_element_type(ov.Type.u8)
            for name in sorted(self._f32_outputs):
                ppp.output(name).tensor().set_element_type(ov.Type.f32)
            model = ppp.build()

        self._model = model
        return model


class OpenVinoBackend(InferenceBackend):
    """
    Inference backend over OpenVINO Runtime.

    Example:
        backend = OpenVinoBackend(perf_counts=True)
        network = backend.read_network("models/face-detection.xml")
        exec_net = backend.load_network(network, "CPU")
        request = exec_net.create_infer_request()
    """

    def __init__(self, perf_counts: bool = False):
        self._ov = _import_openvino()
        self._core = self._ov.Core()
        self.perf_counts = perf_counts
        self._loaded_devices: Set[str] = set()
        logging.info(f"OpenVINO Runtime {self._ov.get_version()}")

    @property
    def available_devices(self) -> List[str]:
        return list(self._core.available_devices)

    def add_extension(self, library_path: str) -> None:
        self._core.add_extension(library_path)
        logging.info(f"Extension loaded: {library_path}")

    def read_network(self, model_path: str) -> OpenVinoNetwork:
        weights = model_sidecar_path(model_path, ".bin")
        if os.path.exists(weights):
            model = self._core.read_model(model=model_path, weights=weights)
        else:
            model = self._core.read_model(model=model_path)
        return OpenVinoNetwork(model, model_path, self._ov)

    def load_network(
        self,
        network: OpenVinoNetwork,
        device: str,
        config: Optional[Dict[str, str]] = None,
    ) -> OpenVinoExecutableNetwork:
        properties: Dict[str, Any] = dict(config or {})
        if self.perf_counts:
            properties.setdefault("PERF_COUNT", True)

        if device not in self._loaded_devices:
            logging.info(f"Loading device {device}")
            self._loaded_devices.add(device)

        compiled = self._core.compile_model(network.build(), device, properties)
        return OpenVinoExecutableNetwork(compiled, self._ov)

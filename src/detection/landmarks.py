"""
Facial landmarks regression.

Face crops are batched into one request. The network returns 70 values per
face: 35 (x, y) points normalized to the face crop.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from inference.backend import InferenceBackend, Network, NetworkValidationError, PortInfo
from models.detection import NUM_LANDMARK_POINTS
from .base import BaseDetection, mat_to_blob

LANDMARKS_OUTPUT_NAME = "align_fc3"
LANDMARKS_OUTPUT_SIZE = NUM_LANDMARK_POINTS * 2

# IR v10+ expresses fully connected layers as MatMul.
FULLY_CONNECTED_TYPES = ("FullyConnected", "MatMul")


def is_fully_connected(port: PortInfo) -> bool:
    """True for a fully connected output, with or without a bias."""
    if port.layer_type in FULLY_CONNECTED_TYPES:
        return True
    # A biased layer is saved as MatMul followed by an Add carrying the layer name.
    return port.layer_type == "Add" and port.input_layer_type in FULLY_CONNECTED_TYPES


class FacialLandmarksDetection(BaseDetection):
    """
    Batched landmark estimator for face crops.

    Up to `max_batch` faces are collected with `enqueue()`; extra faces are
    dropped with a warning. With a dynamic batch only the enqueued faces are
    sent to the network.
    """

    def __init__(
        self,
        model_path: str,
        device: str,
        max_batch: int = 16,
        is_batch_dynamic: bool = False,
        is_async: bool = False,
    ):
        super().__init__(
            "Facial Landmarks", model_path, device,
            max_batch=max_batch, is_batch_dynamic=is_batch_dynamic, is_async=is_async,
        )
        self.output_name = LANDMARKS_OUTPUT_NAME
        self.enqueued_faces = 0
        self._batch_input: Optional[np.ndarray] = None

    def submit_request(self) -> None:
        if not self.enqueued_faces:
            return
        if self.request is None or self._batch_input is None:
            return
        if self.is_batch_dynamic:
            batch = self._batch_input[:self.enqueued_faces]
        else:
            batch = self._batch_input
        self.request.set_input(self.input_name, batch)
        super().submit_request()
        self.enqueued_faces = 0

    def enqueue(self, face: np.ndarray) -> None:
        if not self.enabled:
            return
        if self.enqueued_faces == self.max_batch:
            logging.warning(
                f"Number of detected faces more than maximum({self.max_batch}) "
                f"processed by Facial Landmarks estimator"
            )
            return
        self._ensure_request()

        if self._batch_input is None:
            _, channels, height, width = (int(v) for v in self.input_shape[:4])
            self._batch_input = np.zeros((self.max_batch, channels, height, width), dtype=np.uint8)

        self._batch_input[self.enqueued_faces] = mat_to_blob(face, self.input_shape)
        self.enqueued_faces += 1

    def __getitem__(self, idx: int) -> List[float]:
        """Return the 70 normalized landmark values of the `idx`-th submitted face."""
        output = np.asarray(self.request.get_output(self.output_name), dtype=np.float32)
        output = output.reshape(output.shape[0], -1)
        return output[idx].tolist()

    def read(self, backend: InferenceBackend) -> Network:
        logging.info("Loading network files for Facial Landmarks Estimation")
        network = backend.read_network(self.model_path)
        network.set_batch_size(self.max_batch)
        logging.info(f"Batch size is set to {self.max_batch} for Facial Landmarks Estimation network")

        info = network.info()

        logging.info("Checking Facial Landmarks Estimation network inputs")
        input_port = self._single_input(info.inputs, "Facial Landmarks Estimation")
        network.set_input_precision_u8(input_port.name)

        logging.info("Checking Facial Landmarks Estimation network outputs")
        output_port = self._single_output(info.outputs, "Facial Landmarks Estimation")
        network.set_output_precision_f32(output_port.name)

        if output_port.layer_name != LANDMARKS_OUTPUT_NAME:
            raise NetworkValidationError(
                f"Facial Landmarks Estimation network output layer unknown: "
                f"{output_port.layer_name}, should be {LANDMARKS_OUTPUT_NAME}"
            )
        if not is_fully_connected(output_port):
            raise NetworkValidationError(
                f"Facial Landmarks Estimation network output layer ({output_port.layer_name}) "
                f"has invalid type: {output_port.layer_type}, should be FullyConnected"
            )
        out_size = int(output_port.shape[-1]) if output_port.shape else 0
        if out_size != LANDMARKS_OUTPUT_SIZE:
            raise NetworkValidationError(
                f"Facial Landmarks Estimation network output layer ({output_port.layer_name}) "
                f"has invalid out-size={out_size}, should be {LANDMARKS_OUTPUT_SIZE}"
            )

        logging.info(f"Loading Facial Landmarks Estimation model to the {self.device} plugin")
        self.input_name = input_port.name
        self.input_shape = input_port.shape
        self.output_name = output_port.name
        self._batch_input = None
        return network

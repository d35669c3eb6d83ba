"""
SSD-style face detector.

The network has one image input and one DetectionOutput layer producing a
[1, 1, N, 7] tensor of proposals:
    [image_id, label, confidence, x_min, y_min, x_max, y_max]
with corners normalized to [0, 1]. Proposals after the first negative
image_id are padding.
"""

from __future__ import annotations

import logging
import os
from typing import List

import numpy as np

from inference.backend import InferenceBackend, Network, NetworkValidationError, model_sidecar_path
from models.detection import BoundingBox, FaceResult
from .base import BaseDetection, mat_to_blob

DETECTION_OBJECT_SIZE = 7
BB_ENLARGE_COEFFICIENT = 1.2


def load_labels(labels_path: str) -> List[str]:
    """Read whitespace-separated labels; a missing file yields no labels."""
    if not os.path.exists(labels_path):
        return []
    with open(labels_path, "r") as f:
        return f.read().split()


class FaceDetection(BaseDetection):
    """
    Face detector producing square, enlarged face boxes.

    Example:
        detector = FaceDetection("models/face-detection-adas-0001.xml", "CPU", detection_threshold=0.5)
        load(detector, backend)
        detector.enqueue(frame)
        detector.submit_request()
        detector.wait()
        detector.fetch_results()
        for face in detector.results:
            ...
    """

    def __init__(
        self,
        model_path: str,
        device: str,
        max_batch: int = 1,
        is_batch_dynamic: bool = False,
        is_async: bool = False,
        detection_threshold: float = 0.5,
        do_raw_output_messages: bool = False,
    ):
        super().__init__(
            "Face Detection", model_path, device,
            max_batch=max_batch, is_batch_dynamic=is_batch_dynamic, is_async=is_async,
        )
        self.detection_threshold = detection_threshold
        self.do_raw_output_messages = do_raw_output_messages
        self.enqueued_frames = 0
        self.width = 0
        self.height = 0
        self.bb_enlarge_coefficient = BB_ENLARGE_COEFFICIENT
        self.results_fetched = False
        self.results: List[FaceResult] = []
        self.labels: List[str] = []
        self.output_name = ""
        self.max_proposal_count = 0
        self.object_size = 0

    def submit_request(self) -> None:
        if not self.enqueued_frames:
            return
        self.enqueued_frames = 0
        self.results_fetched = False
        self.results = []
        super().submit_request()

    def enqueue(self, frame: np.ndarray) -> None:
        if not self.enabled:
            return
        request = self._ensure_request()

        self.height, self.width = frame.shape[:2]
        blob = mat_to_blob(frame, self.input_shape)
        request.set_input(self.input_name, blob[None, ...])

        self.enqueued_frames = 1

    def read(self, backend: InferenceBackend) -> Network:
        logging.info("Loading network files for Face Detection")
        network = backend.read_network(self.model_path)
        logging.info(f"Batch size is set to {self.max_batch}")
        network.set_batch_size(self.max_batch)

        self.labels = load_labels(model_sidecar_path(self.model_path, ".labels"))
        info = network.info()

        logging.info("Checking Face Detection network inputs")
        input_port = self._single_input(info.inputs, "Face Detection")
        network.set_input_precision_u8(input_port.name)

        logging.info("Checking Face Detection network outputs")
        output_port = self._single_output(info.outputs, "Face Detection")

        if output_port.layer_type != "DetectionOutput":
            raise NetworkValidationError(
                f"Face Detection network output layer({output_port.layer_name}) should be "
                f"DetectionOutput, but was {output_port.layer_type}"
            )
        if "num_classes" not in output_port.layer_params:
            raise NetworkValidationError(
                f"Face Detection network output layer ({output_port.name}) should have "
                f"num_classes integer attribute"
            )

        num_classes = int(output_port.layer_params["num_classes"])
        if len(self.labels) != num_classes:
            # Networks with an implicit background class ship one label fewer.
            if len(self.labels) == num_classes - 1:
                self.labels.insert(0, "fake")
            else:
                self.labels = []

        dims = output_port.shape
        if len(dims) != 4:
            raise NetworkValidationError(
                f"Face Detection network output dimensions not compatible, should be 4, "
                f"but was {len(dims)}"
            )
        if dims[3] != DETECTION_OBJECT_SIZE:
            raise NetworkValidationError(
                "Face Detection network output layer should have 7 as a last dimension"
            )
        self.max_proposal_count = int(dims[2])
        self.object_size = int(dims[3])
        network.set_output_precision_f32(output_port.name)

        logging.info(f"Loading Face Detection model to the {self.device} plugin")
        self.input_name = input_port.name
        self.input_shape = input_port.shape
        self.output_name = output_port.name
        return network

    def fetch_results(self) -> None:
        if not self.enabled:
            return
        self.results = []
        if self.results_fetched:
            return
        self.results_fetched = True

        detections = np.asarray(self.request.get_output(self.output_name), dtype=np.float32).reshape(-1)
        self.results = self.parse_detections(detections)

    def parse_detections(self, detections: np.ndarray) -> List[FaceResult]:
        """Turn the flat proposal buffer into thresholded, enlarged face results."""
        out: List[FaceResult] = []
        size = self.object_size
        for i in range(self.max_proposal_count):
            row = detections[i * size:(i + 1) * size]
            image_id = float(row[0])
            label = int(row[1])
            confidence = float(row[2])

            if confidence <= self.detection_threshold:
                continue

            x = int(row[3] * self.width)
            y = int(row[4] * self.height)
            w = int(row[5] * self.width - x)
            h = int(row[6] * self.height - y)

            # Square box enlarged around its center.
            location = BoundingBox.from_xywh(x, y, w, h).square_enlarged(self.bb_enlarge_coefficient)

            if image_id < 0:
                break

            if self.do_raw_output_messages:
                rx, ry, rw, rh = location.as_xywh()
                print(
                    f"[{i},{label}] element, prob = {confidence:.6g}    "
                    f"({rx},{ry})-({rw},{rh}) WILL BE RENDERED!"
                )

            out.append(FaceResult(label=label, confidence=confidence, location=location))
        return out

"""
Pipeline engine for the face landmarks demo.

Face detection of the next frame is submitted before landmarks of the
current frame are estimated, so in async mode the two networks run
concurrently:

    frame N:   [detect N] ......................
    frame N+1:            [detect N+1] .........
    landmarks:            [landmarks N] [render N]
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import cv2
import numpy as np

from models.detection import FaceAnalysis, FaceLandmarks
from models.frame import FrameData
from observation import ObservationSource, create_source_from_config
from runtime.context import RuntimeContext
from pipeline.stages.annotate import annotate_frame

WINDOW_NAME = "Detection results"
QUIT_KEYS = (27, ord("q"), ord("Q"))


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        max_consecutive_failures: Max frame read failures on a live source before stopping.
        retry_delay: Seconds to wait between failed reads on a live source.
        display: Show results in a cv2 window.
        wait_for_key: Wait for a key press in the window before exiting.
        record: Enable video recording.
        output_dir: Directory for recorded videos.
        perf_counts: Log per-layer performance counts at the end.
    """
    max_consecutive_failures: int = 10
    retry_delay: float = 0.5
    display: bool = True
    wait_for_key: bool = True
    record: bool = False
    output_dir: str = "output/video"
    perf_counts: bool = False


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    face_count: int = 0
    start_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Demo loop over an ObservationSource.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(device_id="cam"))
        ctx = RuntimeContext(config, face_detector, landmarks_detector)
        engine = PipelineEngine(source, ctx, PipelineConfig(display=True))
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        ctx: RuntimeContext,
        config: PipelineConfig,
    ):
        self.source = source
        self.ctx = ctx
        self.config = config
        self.stats = PipelineStats()
        self._running = False
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._output_path: Optional[str] = None
        self._callbacks: List[Callable[[FrameData, List[FaceAnalysis]], None]] = []

    def add_callback(self, callback: Callable[[FrameData, List[FaceAnalysis]], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, analyses) as arguments.
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run the demo loop until the input ends or the user quits.

        Raises:
            RuntimeError: If the first frame cannot be read.
        """
        self._running = True
        self.stats = PipelineStats()
        face = self.ctx.face_detector
        timer = self.ctx.timer

        try:
            self.source.open()
            logging.info(f"Pipeline started: source={self.source.source_id}")

            frame_data = self._read_next()
            if frame_data is None:
                raise RuntimeError("Failed to get frame from the input")

            if self.config.record:
                self._setup_recording(frame_data)

            face.enqueue(frame_data.frame)
            face.submit_request()

            while self._running:
                timer.start("total")

                next_frame = self._read_next()
                is_last_frame = next_frame is None

                timer.start("detection")
                face.wait()
                face.fetch_results()
                timer.finish("detection")
                results = list(face.results)

                # Keep the detector busy with the next frame while landmarks run.
                if not is_last_frame:
                    face.enqueue(next_frame.frame)
                    face.submit_request()

                timer.start("landmarks")
                analyses = self._estimate_landmarks(frame_data, results)
                timer.finish("landmarks")

                annotated = annotate_frame(
                    frame_data.frame, analyses, face.labels, timer,
                    landmarks_enabled=self.ctx.landmarks_detector.enabled,
                )
                self._publish(frame_data, annotated, analyses)

                if self.config.display and not self._handle_display(annotated):
                    timer.finish("total")
                    break

                timer.finish("total")

                if is_last_frame:
                    break
                frame_data = next_frame

        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._cleanup()

    def _read_next(self) -> Optional[FrameData]:
        """
        Read the next frame.

        Finite sources end on the first failed read; live sources are retried
        up to `max_consecutive_failures` times.
        """
        while True:
            frame_data = self.source.read()
            if frame_data is not None:
                self.stats.consecutive_failures = 0
                return frame_data
            if not self.source.is_live:
                return None

            self.stats.consecutive_failures += 1
            if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                logging.error(
                    f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                )
                return None
            logging.warning(
                f"Frame read failed ({self.stats.consecutive_failures}/"
                f"{self.config.max_consecutive_failures})"
            )
            time.sleep(self.config.retry_delay)

    def _estimate_landmarks(self, frame_data: FrameData, results: List) -> List[FaceAnalysis]:
        """Run landmarks on every face whose ROI lies inside the frame."""
        landmarks = self.ctx.landmarks_detector
        analyses: List[FaceAnalysis] = []
        batch_slots: List[int] = []

        for result in results:
            roi = result.location.clamp(frame_data.width, frame_data.height)
            if roi.is_empty:
                continue
            analyses.append(FaceAnalysis(face=result, roi=roi))
            if landmarks.enabled and len(batch_slots) < landmarks.max_batch:
                batch_slots.append(len(analyses) - 1)
            landmarks.enqueue(frame_data.crop(roi))

        landmarks.submit_request()
        landmarks.wait()

        for batch_index, analysis_index in enumerate(batch_slots):
            analyses[analysis_index].landmarks = FaceLandmarks.from_flat(landmarks[batch_index])

        return analyses

    def _publish(self, frame_data: FrameData, annotated: np.ndarray, analyses: List[FaceAnalysis]) -> None:
        self.stats.frame_count += 1
        self.stats.face_count += len(analyses)

        self.ctx.update_frame(annotated, fps=self.ctx.timer["total"].fps(), face_count=len(analyses))

        if self._video_writer is not None:
            self._video_writer.write(annotated)

        for callback in self._callbacks:
            try:
                callback(frame_data, analyses)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _handle_display(self, frame: np.ndarray) -> bool:
        """
        Show the annotated frame.

        Returns False if the user pressed q or Esc.
        """
        cv2.imshow(WINDOW_NAME, frame)
        key = cv2.waitKey(1) & 0xFF
        return key not in QUIT_KEYS

    def _setup_recording(self, first_frame: FrameData) -> None:
        if not os.path.exists(self.config.output_dir):
            os.makedirs(self.config.output_dir)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._output_path = f"{self.config.output_dir}/faces_{timestamp}.avi"

        fps = self.ctx.config.get("camera", {}).get("fps", 30)
        fourcc = cv2.VideoWriter_fourcc(*'XVID')
        self._video_writer = cv2.VideoWriter(
            self._output_path, fourcc, fps, first_frame.size, True
        )
        logging.info(f"Video recording started: {self._output_path}")

    def _cleanup(self) -> None:
        self._running = False

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logging.info(f"Video saved: {self._output_path}")

        logging.info(f"Number of processed frames: {self.stats.frame_count}")
        if "total" in self.ctx.timer:
            logging.info(f"Total image throughput: {self.ctx.timer['total'].fps():.2f} fps")

        if self.config.perf_counts:
            self.ctx.face_detector.print_performance_counts()
            self.ctx.landmarks_detector.print_performance_counts()

        if self.config.display:
            if self.config.wait_for_key and self.stats.frame_count:
                logging.info("Press any key to exit")
                cv2.waitKey(0)
            cv2.destroyAllWindows()

        logging.info("Pipeline stopped")


def create_engine_from_config(config: Dict[str, Any], ctx: RuntimeContext) -> PipelineEngine:
    """
    Factory function to create a PipelineEngine from the config dict.

    Args:
        config: Full application config dict.
        ctx: RuntimeContext with the loaded detectors.
    """
    camera_cfg = config.get("camera", {})
    source = create_source_from_config(camera_cfg, source_id="input")

    display_cfg = config.get("display", {}) or {}
    pipeline_config = PipelineConfig(
        display=display_cfg.get("show", True),
        wait_for_key=display_cfg.get("wait_for_key", True),
        record=display_cfg.get("record", False),
        output_dir=display_cfg.get("output_dir", "output/video"),
        perf_counts=(config.get("inference", {}) or {}).get("perf_counts", False),
    )
    return PipelineEngine(source, ctx, pipeline_config)

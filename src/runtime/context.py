from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

from ops.timing import Timer


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: dict
    face_detector: Any
    landmarks_detector: Any
    web_state: Any = None
    timer: Timer = field(default_factory=Timer)

    # Observability
    system_stats: dict = field(default_factory=dict)

    def update_frame(self, frame: np.ndarray, fps: float, face_count: int = 0) -> None:
        stats: Dict[str, Any] = {
            "fps": fps,
            "last_frame_ts": time.time(),
            "face_count": face_count,
            "frame_count": self.system_stats.get("frame_count", 0) + 1,
            "timers": self.timer.snapshot(),
        }
        self.system_stats.update(stats)
        if self.web_state is not None:
            self.web_state.set_frame(frame)
            self.web_state.update_system_stats(stats)

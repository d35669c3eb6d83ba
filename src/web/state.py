import threading
import time
from typing import Any, Dict, Optional

import cv2
import numpy as np


class SharedState:
    """
    Singleton class to share state between the demo loop
    and the FastAPI preview server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.reset()
        return cls._instance

    def reset(self) -> None:
        """Drop the cached frame and statistics."""
        self.frame: Optional[np.ndarray] = None
        self.frame_lock = threading.Lock()
        self.stats_lock = threading.Lock()
        self.system_stats: Dict[str, Any] = {
            "fps": 0.0,
            "frame_count": 0,
            "face_count": 0,
            "timers": {},
            "start_time": time.time(),
            "last_frame_ts": None,
        }

    def set_frame(self, frame: np.ndarray) -> None:
        """Update the current annotated frame."""
        with self.frame_lock:
            if frame is not None:
                self.frame = frame.copy()
        with self.stats_lock:
            self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self) -> Optional[np.ndarray]:
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def get_jpeg(self) -> Optional[bytes]:
        """Latest frame encoded as JPEG, or None before the first frame."""
        frame = self.get_frame()
        if frame is None:
            return None
        ok, buf = cv2.imencode(".jpg", frame)
        if not ok:
            return None
        return buf.tobytes()

    def update_system_stats(self, stats: Dict[str, Any]) -> None:
        with self.stats_lock:
            self.system_stats.update(stats)

    def get_system_stats_copy(self) -> Dict[str, Any]:
        with self.stats_lock:
            return dict(self.system_stats)


# Global instance
state = SharedState()

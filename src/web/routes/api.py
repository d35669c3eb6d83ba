from __future__ import annotations

import time
from typing import Optional, Tuple

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response, StreamingResponse

from ..api_models import StatusResponse
from ..state import state

router = APIRouter()


def _derive_status(last_frame_age: Optional[float]) -> str:
    """
    Status classifier used by /api/status.
    No frame yet => waiting; last frame older than 2s => stale.
    """
    if last_frame_age is None:
        return "waiting"
    if last_frame_age > 2:
        return "stale"
    return "running"


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Demo loop status for the preview page.
    Fields:
    - status: running|stale|waiting
    - fps: total image throughput
    - frame_count / face_count: frames processed and faces in the latest frame
    - last_frame_age: seconds since the last annotated frame (None if never)
    - timers: smoothed/last/total milliseconds per pipeline timer
    """
    now = time.time()
    sys_stats = state.get_system_stats_copy()
    last_frame_ts = sys_stats.get("last_frame_ts")
    last_frame_age = now - last_frame_ts if last_frame_ts else None
    start_time = sys_stats.get("start_time")

    return {
        "status": _derive_status(last_frame_age),
        "fps": sys_stats.get("fps", 0.0),
        "frame_count": sys_stats.get("frame_count", 0),
        "face_count": sys_stats.get("face_count", 0),
        "last_frame_age": last_frame_age,
        "uptime_seconds": int(now - start_time) if start_time else None,
        "timers": sys_stats.get("timers", {}),
        "timestamp": now,
    }


@router.get("/frame.jpg")
def frame_jpeg():
    jpg = state.get_jpeg()
    if jpg is None:
        raise HTTPException(status_code=503, detail="No frame available yet")
    return Response(content=jpg, media_type="image/jpeg", headers={"Cache-Control": "no-store"})


def _clamp_fps(fps: int) -> Tuple[int, float]:
    fps = max(1, min(30, int(fps)))
    return fps, 1.0 / fps


@router.get("/stream")
def stream(fps: int = 10):
    """
    Stream MJPEG frames from the shared state (populated by the demo loop).
    """
    _, delay = _clamp_fps(fps)

    def gen():
        while True:
            jpg = state.get_jpeg()
            if jpg is None:
                time.sleep(0.1)
                continue
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)

    return StreamingResponse(gen(), media_type="multipart/x-mixed-replace; boundary=frame")

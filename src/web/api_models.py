from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class TimerStats(BaseModel):
    smoothed_ms: float
    last_ms: float
    total_ms: float
    calls: int


class StatusResponse(BaseModel):
    status: str = Field(..., description="running|stale|waiting")
    fps: float = Field(0.0, description="Total image throughput")
    frame_count: int = Field(0, description="Frames processed since start")
    face_count: int = Field(0, description="Faces found in the latest frame")
    last_frame_age: Optional[float] = Field(None, description="Seconds since last frame")
    uptime_seconds: Optional[int] = None
    timers: Dict[str, TimerStats] = Field(default_factory=dict)
    timestamp: float

"""
Pipeline stages for the face landmarks demo.

- annotate: Frame annotation (faces, landmarks, timings)
"""

from .annotate import annotate_frame, draw_faces, draw_timing, timing_lines

__all__ = ["annotate_frame", "draw_faces", "draw_timing", "timing_lines"]

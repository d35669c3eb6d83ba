"""
Pipeline module for the face landmarks demo.

The pipeline orchestrates the full processing flow:
- Frame acquisition from observation sources
- Face detection (pipelined one frame ahead)
- Facial landmarks estimation
- Annotation, display, recording and web state updates
"""

from .engine import PipelineEngine, PipelineConfig, PipelineStats, create_engine_from_config

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineStats",
    "create_engine_from_config",
]

"""
Logging setup.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

from inference.backend import PerfCount


def setup_logging(log_path: str, log_level: str) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def format_performance_counts(counts: Iterable[PerfCount]) -> str:
    """Render per-layer profiling entries as a fixed-width table with a total line."""
    lines = []
    total_us = 0
    for c in counts:
        lines.append(
            f"{c.layer_name[:30]:<30} {c.status:<14} layerType: {c.layer_type[:15]:<15} "
            f"execType: {c.exec_type[:20]:<20} realTime: {c.real_time_us:<10} cpu: {c.cpu_time_us}"
        )
        total_us += c.real_time_us
    lines.append(f"Total time: {total_us} microseconds")
    return "\n".join(lines)

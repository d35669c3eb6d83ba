"""
Inference layer: a small backend interface over the external inference engine.
"""

from .backend import (
    ExecutableNetwork,
    InferenceBackend,
    InferRequest,
    Network,
    NetworkInfo,
    NetworkValidationError,
    PerfCount,
    PortInfo,
)

__all__ = [
    "ExecutableNetwork",
    "InferenceBackend",
    "InferRequest",
    "Network",
    "NetworkInfo",
    "NetworkValidationError",
    "PerfCount",
    "PortInfo",
]

"""
Processing Module
=================

The pixelate-video flow and its pluggable backends.

Components:
    - ProcessingBackend: Protocol for transformation backends
    - SimulatedPixelationBackend: Returns the input unchanged after a delay
    - ProcessingClient: Validated, explicitly constructed flow client

Design Philosophy:
    The flow contract ({videoDataUri, pixelationLevel} -> {processedVideoDataUri})
    is fixed. Replacing the simulation means swapping the backend only.
"""

from pixelclip.processing.backend import (
    ProcessingBackend,
    SimulatedPixelationBackend,
    create_processing_backend,
    simulated_latency,
)
from pixelclip.processing.client import (
    InvalidParameter,
    MediaCategoryMismatch,
    ProcessingClient,
    ProcessingClientMetrics,
    ProcessingFailed,
    validate_pixelation_level,
)

__all__ = [
    "ProcessingBackend",
    "SimulatedPixelationBackend",
    "create_processing_backend",
    "simulated_latency",
    "InvalidParameter",
    "MediaCategoryMismatch",
    "ProcessingClient",
    "ProcessingClientMetrics",
    "ProcessingFailed",
    "validate_pixelation_level",
]

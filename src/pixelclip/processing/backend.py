"""
Processing Backends
===================

Pluggable transformation backends behind the pixelate-video flow.

This module provides the ProcessingBackend protocol and the canonical
SimulatedPixelationBackend, which performs NO transformation: it waits
for a level-dependent delay and hands the input back unchanged.

Design Rules:
    - Backends receive and return data URIs, nothing else
    - Validation and type checks live in ProcessingClient, not here
    - Swapping a backend must not change the flow contract
"""

import asyncio
import logging
from typing import Awaitable, Callable, Protocol

from pixelclip.config import Settings


logger = logging.getLogger(__name__)


class ProcessingBackend(Protocol):
    """
    Protocol for processing backends.

    All implementations must provide an async `transform` method that
    takes a data URI and a validated pixelation level and returns a
    data URI of the same media category.
    """

    name: str

    async def transform(self, representation: str, level: int) -> str:
        """
        Transform a video.

        Args:
            representation: Input video as a data URI
            level: Pixelation level, already validated to [2, 50]

        Returns:
            Processed video as a data URI
        """
        ...


def simulated_latency(
    level: int,
    base_delay: float = 0.5,
    per_level_delay: float = 0.05,
) -> float:
    """Seconds the simulated backend waits for a given level."""
    return base_delay + level * per_level_delay


class SimulatedPixelationBackend:
    """
    Stand-in backend that returns its input unchanged.

    The delay grows monotonically with the level so callers exercise
    their suspended PROCESSING state realistically.

    Attributes:
        base_delay_seconds: Fixed part of the delay
        per_level_delay_seconds: Delay added per level unit
    """

    name = "simulated"

    def __init__(
        self,
        base_delay_seconds: float = 0.5,
        per_level_delay_seconds: float = 0.05,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize simulated backend.

        Args:
            base_delay_seconds: Fixed delay
            per_level_delay_seconds: Delay per level unit
            sleep: Coroutine used to wait (replaceable in tests)
        """
        self.base_delay_seconds = base_delay_seconds
        self.per_level_delay_seconds = per_level_delay_seconds
        self._sleep = sleep

        logger.info(
            f"SimulatedPixelationBackend initialized: "
            f"base_delay={base_delay_seconds}s, per_level={per_level_delay_seconds}s"
        )

    async def transform(self, representation: str, level: int) -> str:
        delay = simulated_latency(
            level,
            base_delay=self.base_delay_seconds,
            per_level_delay=self.per_level_delay_seconds,
        )
        logger.info(
            f"Simulating video processing: level={level}, delay={delay:.2f}s "
            f"(no transformation is performed, returning input unchanged)"
        )
        await self._sleep(delay)
        return representation


def create_processing_backend(settings: Settings) -> ProcessingBackend:
    """
    Create processing backend based on config.

    Raises:
        ValueError: If the configured backend is unknown
    """
    backend = settings.processing.backend

    if backend == "simulated":
        logger.info("Using SimulatedPixelationBackend")
        return SimulatedPixelationBackend(
            base_delay_seconds=settings.processing.base_delay_seconds,
            per_level_delay_seconds=settings.processing.per_level_delay_seconds,
        )

    raise ValueError(f"Unknown processing backend: {backend}")

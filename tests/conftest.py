"""
Test Configuration
==================

Pytest fixtures and test configuration for PixelClip.
"""

import asyncio
from typing import List, Optional

import pytest
import pytest_asyncio

from pixelclip.config import LoggingConfig, ProcessingConfig, Settings
from pixelclip.models.media import MediaPayload
from pixelclip.processing import ProcessingClient, SimulatedPixelationBackend
from pixelclip.session import HandleRegistry, SessionController


class GatedBackend:
    """
    Backend that blocks until released.

    Lets tests hold a session in PROCESSING and decide when, and how,
    the call resolves.
    """

    name = "gated"

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: List[int] = []
        self.result: Optional[str] = None
        self.error: Optional[Exception] = None

    async def transform(self, representation: str, level: int) -> str:
        self.calls.append(level)
        self.started.set()
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result if self.result is not None else representation


@pytest.fixture
def settings():
    """Settings with no simulated latency."""
    return Settings(
        processing=ProcessingConfig(base_delay_seconds=0.0, per_level_delay_seconds=0.0),
        logging=LoggingConfig(format="text"),
    )


@pytest.fixture
def video_payload():
    """A 1KB fake mp4 upload."""
    return MediaPayload(
        data=bytes(range(256)) * 4,
        mime_type="video/mp4",
        filename="holiday_at_the_beach_2024.mp4",
    )


@pytest.fixture
def other_video_payload():
    """A second, different upload."""
    return MediaPayload(
        data=b"\x00\x00\x00\x18ftypwebm" * 8,
        mime_type="video/webm",
        filename="second.webm",
    )


@pytest.fixture
def image_payload():
    """A non-video upload."""
    return MediaPayload(
        data=b"\x89PNG\r\n\x1a\n" + b"\x00" * 32,
        mime_type="image/png",
        filename="picture.png",
    )


@pytest.fixture
def registry():
    return HandleRegistry()


@pytest.fixture
def instant_backend():
    return SimulatedPixelationBackend(base_delay_seconds=0.0, per_level_delay_seconds=0.0)


@pytest.fixture
def gated_backend():
    return GatedBackend()


@pytest_asyncio.fixture
async def client(instant_backend):
    """Started client over the zero-latency simulated backend."""
    async with ProcessingClient(instant_backend) as started:
        yield started


@pytest_asyncio.fixture
async def gated_client(gated_backend):
    """Started client over the gated backend."""
    async with ProcessingClient(gated_backend) as started:
        yield started


@pytest.fixture
def session(client, registry):
    controller = SessionController(client, registry, session_id="test-session")
    yield controller
    controller.close()


@pytest.fixture
def gated_session(gated_client, gated_backend, registry):
    controller = SessionController(gated_client, registry, session_id="gated-session")
    yield controller
    gated_backend.release.set()
    controller.close()

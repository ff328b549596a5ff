"""
Processing Client
=================

Schema-validated entry point to the pixelate-video flow.

The client is constructed explicitly and injected into whoever needs
it; there is no process-wide instance. It owns the backend for its
lifetime and holds the backend credentials as an opaque string.

This client:
    - Validates the flow input (pixelation level in [2, 50], integer only)
    - Delegates to the configured ProcessingBackend
    - Rejects outputs whose media category differs from the input's
    - Counts calls and failures for the metrics endpoint

Example:
    backend = SimulatedPixelationBackend()

    async with ProcessingClient(backend) as client:
        output = await client.pixelate_video(
            {"videoDataUri": uri, "pixelationLevel": 10}
        )
        print(output.processed_video_data_uri == uri)
"""

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from pixelclip.codec import MalformedRepresentation, media_category, peek_mime_type
from pixelclip.errors import PixelClipError
from pixelclip.models.flow import (
    MAX_PIXELATION_LEVEL,
    MIN_PIXELATION_LEVEL,
    PixelateVideoInput,
    PixelateVideoOutput,
)
from pixelclip.processing.backend import ProcessingBackend


logger = logging.getLogger(__name__)


class InvalidParameter(PixelClipError, ValueError):
    """Raised when the flow input fails schema validation."""
    pass


class ProcessingFailed(PixelClipError):
    """Raised when a processing call does not produce a usable result."""
    pass


class MediaCategoryMismatch(ProcessingFailed):
    """Raised when a backend returns a different kind of media than it was given."""
    pass


def validate_pixelation_level(level: Any) -> int:
    """
    Check that level is an integer in [2, 50].

    Booleans and integral floats are rejected.

    Raises:
        InvalidParameter: If the level is out of range or not an integer
    """
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidParameter(
            f"pixelationLevel must be an integer, got {type(level).__name__}"
        )
    if not MIN_PIXELATION_LEVEL <= level <= MAX_PIXELATION_LEVEL:
        raise InvalidParameter(
            f"pixelationLevel must be between {MIN_PIXELATION_LEVEL} and "
            f"{MAX_PIXELATION_LEVEL}, got {level}"
        )
    return level


class ProcessingClientMetrics:
    """Metrics for ProcessingClient observability."""

    __slots__ = (
        "calls",
        "succeeded",
        "failed",
        "rejected",
    )

    def __init__(self) -> None:
        self.calls: int = 0
        self.succeeded: int = 0
        self.failed: int = 0
        self.rejected: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "calls": self.calls,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "rejected": self.rejected,
        }


class ProcessingClient:
    """
    Client for the pixelate-video flow.

    Attributes:
        backend: Backend performing the transformation
        started: Whether the client accepts calls
        has_credentials: Whether an API key was supplied
        metrics: Operational metrics
    """

    def __init__(
        self,
        backend: ProcessingBackend,
        api_key: Optional[str] = None,
    ) -> None:
        """
        Initialize processing client.

        Args:
            backend: Backend to delegate to
            api_key: Opaque credential for a real backend, passed through untouched
        """
        self.backend = backend
        self._api_key = api_key
        self._started: bool = False
        self.metrics = ProcessingClientMetrics()

    @property
    def started(self) -> bool:
        return self._started

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    async def start(self) -> None:
        """Open the client for calls."""
        if self._started:
            return
        self._started = True
        logger.info(
            f"ProcessingClient started: backend={self.backend.name}, "
            f"credentials={'present' if self.has_credentials else 'absent'}"
        )

    async def close(self) -> None:
        """Close the client. Further calls fail with ProcessingFailed."""
        if not self._started:
            return
        self._started = False
        logger.info("ProcessingClient closed")

    async def __aenter__(self) -> "ProcessingClient":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def pixelate_video(
        self,
        data: Union[PixelateVideoInput, Mapping[str, Any]],
    ) -> PixelateVideoOutput:
        """
        Run the pixelate-video flow.

        Args:
            data: Flow input, as a model or a {videoDataUri, pixelationLevel} mapping

        Returns:
            PixelateVideoOutput

        Raises:
            InvalidParameter: If the input fails validation (backend not called)
            MalformedRepresentation: If a data URI lacks the expected structure
            MediaCategoryMismatch: If the output is a different kind of media
            ProcessingFailed: If the client is closed or the backend fails
        """
        if not isinstance(data, PixelateVideoInput):
            try:
                data = PixelateVideoInput.model_validate(data)
            except ValidationError as e:
                self.metrics.rejected += 1
                raise InvalidParameter(f"Invalid pixelate-video input: {e}") from e

        processed = await self.process(data.video_data_uri, data.pixelation_level)
        return PixelateVideoOutput(processed_video_data_uri=processed)

    async def process(self, representation: str, level: int) -> str:
        """
        Process a data URI at the given level.

        Same contract as pixelate_video, in positional form.
        """
        try:
            validate_pixelation_level(level)
        except InvalidParameter:
            self.metrics.rejected += 1
            raise

        if not self._started:
            raise ProcessingFailed("ProcessingClient is not started")

        try:
            input_category = media_category(peek_mime_type(representation))
        except MalformedRepresentation:
            self.metrics.rejected += 1
            raise

        self.metrics.calls += 1
        logger.info(
            f"Calling pixelate-video flow: backend={self.backend.name}, "
            f"level={level}, input_category={input_category or 'unknown'}"
        )

        try:
            processed = await self.backend.transform(representation, level)
            output_category = media_category(peek_mime_type(processed))
        except MalformedRepresentation:
            self.metrics.failed += 1
            logger.error("Backend returned a malformed data URI")
            raise
        except Exception as e:
            self.metrics.failed += 1
            logger.error(f"Backend {self.backend.name} failed: {e}")
            raise ProcessingFailed(f"Processing backend failed: {e}") from e

        if output_category != input_category:
            self.metrics.failed += 1
            logger.error(
                f"Backend returned {output_category or 'unknown'} media "
                f"for {input_category or 'unknown'} input"
            )
            raise MediaCategoryMismatch(
                f"Processed media category '{output_category}' does not match "
                f"input category '{input_category}'"
            )

        self.metrics.succeeded += 1
        return processed

"""
Session Controller
==================

Orchestrates one upload session: file selection, processing and download.

The controller is the single owner of the session's two transient
handle slots (original, processed). Every handle it creates is revoked
when it is replaced, when processing fails, or when the session closes,
on every exit path.

State Machine:
    EMPTY      --select video-->      LOADED
    EMPTY      --select non-video-->  EMPTY   (InvalidFileType)
    LOADED     --process-->           PROCESSING
    PROCESSING --backend resolves-->  READY
    PROCESSING --backend fails-->     LOADED  (ProcessingFailed)
    PROCESSING --process-->           PROCESSING (ProcessingInProgress, not dispatched)
    LOADED/READY/PROCESSING --select video--> LOADED

Stale Results:
    Each dispatch is tagged with a generation number. Selecting a new file
    or closing the session bumps the generation, so a call that resolves
    afterwards is discarded (StaleResult) and never creates a handle.

Example:
    async with SessionController(client, registry) as session:
        session.select_file(MediaPayload(data, "video/mp4", "clip.mp4"))
        handle = await session.process(10)
        artifact = session.download()
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, replace
from typing import List, Optional

from pixelclip import codec
from pixelclip.errors import PixelClipError
from pixelclip.models.media import MediaPayload
from pixelclip.models.session import Notice, NoticeVariant, SessionSnapshot, SessionState
from pixelclip.processing.client import (
    ProcessingClient,
    ProcessingFailed,
    validate_pixelation_level,
)
from pixelclip.session.handles import HandleRegistry, HandleRole, TransientHandle
from pixelclip.session.naming import DEFAULT_STEM_LENGTH, download_filename


logger = logging.getLogger(__name__)


VIDEO_MIME_PREFIX = "video/"


class InvalidFileType(PixelClipError):
    """Raised when the selected file is not declared as video/*."""
    pass


class UploadTooLarge(PixelClipError):
    """Raised when the selected file exceeds the upload limit."""
    pass


class NoVideoLoaded(PixelClipError):
    """Raised when processing is requested before a video is selected."""
    pass


class ProcessingInProgress(PixelClipError):
    """Raised when processing is requested while a call is in flight."""
    pass


class ResultNotReady(PixelClipError):
    """Raised when a download is requested before processing succeeded."""
    pass


class StaleResult(PixelClipError):
    """Raised to the caller whose result was superseded and discarded."""
    pass


class SessionClosed(PixelClipError):
    """Raised when a closed session is used."""
    pass


@dataclass(frozen=True, slots=True)
class DownloadArtifact:
    """Processed video offered for download."""

    filename: str
    payload: MediaPayload


class SessionController:
    """
    Lifecycle owner of one upload session.

    Attributes:
        session_id: Session identifier
        state: Current SessionState
        closed: Whether close() has run
        notice: Outcome of the last action
        original_handle: Handle to the uploaded video, if any
        processed_handle: Handle to the processed video, if any
    """

    def __init__(
        self,
        client: ProcessingClient,
        registry: HandleRegistry,
        session_id: Optional[str] = None,
        max_upload_bytes: Optional[int] = None,
        filename_stem_length: int = DEFAULT_STEM_LENGTH,
    ) -> None:
        """
        Initialize session controller.

        Args:
            client: Processing client to call (shared, not owned)
            registry: Registry that issues transient handles
            session_id: Identifier; generated when omitted
            max_upload_bytes: Upload size limit (None = unlimited)
            filename_stem_length: Stem prefix kept in download names
        """
        self.session_id = session_id or uuid.uuid4().hex
        self._client = client
        self._registry = registry
        self._max_upload_bytes = max_upload_bytes
        self._filename_stem_length = filename_stem_length

        self._state = SessionState.EMPTY
        self._payload: Optional[MediaPayload] = None
        self._original: Optional[TransientHandle] = None
        self._processed: Optional[TransientHandle] = None
        self._processed_level: Optional[int] = None
        self._generation: int = 0
        self._closed: bool = False
        self._notice: Optional[Notice] = None
        self._listeners: List[asyncio.Queue] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def notice(self) -> Optional[Notice]:
        return self._notice

    @property
    def original_handle(self) -> Optional[TransientHandle]:
        return self._original

    @property
    def processed_handle(self) -> Optional[TransientHandle]:
        return self._processed

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    # =========================================================================
    # Operations
    # =========================================================================

    def select_file(self, payload: MediaPayload) -> TransientHandle:
        """
        Load a newly selected file.

        Supersedes any previous upload and any in-flight processing call.

        Args:
            payload: Selected file

        Returns:
            Handle to the original video

        Raises:
            InvalidFileType: If the MIME type does not start with "video/"
            UploadTooLarge: If the payload exceeds the upload limit
            SessionClosed: If the session was closed
        """
        self._ensure_open()

        if not payload.mime_type.lower().startswith(VIDEO_MIME_PREFIX):
            logger.warning(
                f"Session {self.session_id}: rejected file {payload.filename!r} "
                f"of type {payload.mime_type!r}"
            )
            self._set_notice(
                "Invalid File Type",
                "Please upload a valid video file.",
                NoticeVariant.DESTRUCTIVE,
            )
            raise InvalidFileType(
                f"Expected a video/* file, got {payload.mime_type!r}"
            )

        if self._max_upload_bytes is not None and payload.size > self._max_upload_bytes:
            logger.warning(
                f"Session {self.session_id}: rejected {payload.size} byte upload "
                f"(limit {self._max_upload_bytes})"
            )
            self._set_notice(
                "File Too Large",
                f"Please upload a video smaller than {self._max_upload_bytes} bytes.",
                NoticeVariant.DESTRUCTIVE,
            )
            raise UploadTooLarge(
                f"Upload of {payload.size} bytes exceeds limit of {self._max_upload_bytes}"
            )

        if self._state is SessionState.PROCESSING:
            logger.info(
                f"Session {self.session_id}: new upload supersedes in-flight processing"
            )

        self._generation += 1
        self._release_handles()
        self._payload = payload
        self._original = self._registry.create(payload, HandleRole.ORIGINAL)
        self._notice = None
        self._set_state(SessionState.LOADED)

        logger.info(f"Session {self.session_id}: loaded {payload!r}")
        return self._original

    async def process(self, level: int) -> TransientHandle:
        """
        Run the pixelate-video flow on the loaded video.

        Args:
            level: Pixelation level in [2, 50]

        Returns:
            Handle to the processed video

        Raises:
            InvalidParameter: If level is invalid (state unchanged)
            NoVideoLoaded: If no video is loaded
            ProcessingInProgress: If a call is already in flight
            ProcessingFailed: If the call failed (state back to LOADED)
            StaleResult: If the session moved on before the call resolved
            SessionClosed: If the session was closed
        """
        self._ensure_open()

        if self._state is SessionState.PROCESSING:
            raise ProcessingInProgress(
                f"Session {self.session_id} is already processing"
            )

        if self._payload is None:
            self._set_notice(
                "No Video Uploaded",
                "Please upload a video file first.",
                NoticeVariant.DESTRUCTIVE,
            )
            raise NoVideoLoaded(f"Session {self.session_id} has no video loaded")

        validate_pixelation_level(level)

        self._revoke_processed()
        self._generation += 1
        generation = self._generation
        payload = self._payload
        self._set_state(SessionState.PROCESSING)

        logger.info(
            f"Session {self.session_id}: processing {payload!r} at level {level} "
            f"(generation {generation})"
        )

        try:
            result = await self._client.process(codec.encode(payload), level)
            processed = codec.decode(result)
        except asyncio.CancelledError:
            if self._is_current(generation):
                self._set_state(SessionState.LOADED)
            raise
        except Exception as e:
            if not self._is_current(generation):
                logger.info(
                    f"Session {self.session_id}: discarding failure of superseded "
                    f"request (generation {generation}): {e}"
                )
                raise StaleResult(
                    f"Processing request {generation} was superseded"
                ) from e

            logger.error(f"Session {self.session_id}: processing failed: {e}")
            self._set_state(SessionState.LOADED)
            self._set_notice(
                "Processing Failed",
                "Could not process the video. Please try again.",
                NoticeVariant.DESTRUCTIVE,
            )
            raise ProcessingFailed(f"Processing failed: {e}") from e

        if not self._is_current(generation):
            logger.info(
                f"Session {self.session_id}: discarding result of superseded "
                f"request (generation {generation})"
            )
            raise StaleResult(f"Processing request {generation} was superseded")

        processed = replace(processed, filename=payload.filename)
        self._processed = self._registry.create(processed, HandleRole.PROCESSED)
        self._processed_level = level
        self._set_state(SessionState.READY)
        self._set_notice(
            "Processing Simulation Complete",
            "Video processing simulation finished.",
        )

        logger.info(f"Session {self.session_id}: processed video ready at level {level}")
        return self._processed

    def download(self) -> DownloadArtifact:
        """
        Get the processed video for download.

        Raises:
            ResultNotReady: If no processed video exists
            SessionClosed: If the session was closed
        """
        self._ensure_open()

        if self._state is not SessionState.READY or self._processed is None:
            raise ResultNotReady(
                f"Session {self.session_id} has no processed video (state {self._state.value})"
            )

        return DownloadArtifact(
            filename=self._download_filename(),
            payload=self._processed.resolve(),
        )

    def snapshot(self) -> SessionSnapshot:
        """Serialisable view of the session."""
        payload = self._payload
        return SessionSnapshot(
            session_id=self.session_id,
            state=self._state,
            closed=self._closed,
            filename=payload.filename if payload else None,
            mime_type=payload.mime_type if payload else None,
            size_bytes=payload.size if payload else 0,
            original_url=self._original.url if self._original else None,
            processed_url=self._processed.url if self._processed else None,
            pixelation_level=self._processed_level,
            download_filename=self._download_filename() if self._processed else None,
            notice=self._notice,
        )

    def subscribe(self, maxsize: int = 16) -> asyncio.Queue:
        """
        Receive a snapshot on every state or notice change.

        A None item is queued when the session closes. Oldest items are
        dropped when the queue is full.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._listeners.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._listeners:
            self._listeners.remove(queue)

    def close(self) -> None:
        """
        Tear the session down, revoking every outstanding handle.

        Safe to call more than once.
        """
        if self._closed:
            return

        self._generation += 1
        self._release_handles()
        self._payload = None
        self._closed = True
        self._state = SessionState.EMPTY
        self._publish()

        for queue in self._listeners:
            self._offer(queue, None)
        self._listeners.clear()

        logger.info(f"Session {self.session_id} closed")

    async def __aenter__(self) -> "SessionController":
        return self

    async def __aexit__(self, *args) -> None:
        self.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosed(f"Session {self.session_id} is closed")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self._closed

    def _revoke_processed(self) -> None:
        if self._processed is not None:
            self._processed.revoke()
            self._processed = None
        self._processed_level = None

    def _release_handles(self) -> None:
        self._revoke_processed()
        if self._original is not None:
            self._original.revoke()
            self._original = None

    def _download_filename(self) -> str:
        return download_filename(
            self._payload.filename if self._payload else None,
            self._processed_level or 0,
            max_stem=self._filename_stem_length,
        )

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.debug(
                f"Session {self.session_id}: {self._state.value} -> {state.value}"
            )
        self._state = state
        self._publish()

    def _set_notice(
        self,
        title: str,
        description: str,
        variant: NoticeVariant = NoticeVariant.DEFAULT,
    ) -> None:
        self._notice = Notice(title=title, description=description, variant=variant)
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for queue in self._listeners:
            self._offer(queue, snapshot)

    def _offer(self, queue: asyncio.Queue, item: Optional[SessionSnapshot]) -> None:
        if queue.full():
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
        try:
            queue.put_nowait(item)
        except asyncio.QueueFull:
            logger.error(f"Session {self.session_id}: listener queue full, event dropped")

"""
Session State Models
====================

Lifecycle states and the serialisable view of an upload session.

Transitions:
    EMPTY      -> LOADED      video file selected
    LOADED     -> PROCESSING  process requested
    PROCESSING -> READY       backend resolved, processed handle created
    PROCESSING -> LOADED      backend failed, or a new file superseded the request
    READY      -> LOADED      new file selected
    READY      -> PROCESSING  re-processing requested

Example:
    snapshot = controller.snapshot()
    if snapshot.state == SessionState.READY:
        print(snapshot.download_filename)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """
    Discrete states of an upload session.

    Attributes:
        EMPTY: No video selected
        LOADED: Original video available, nothing processed
        PROCESSING: A processing call is in flight
        READY: Processed video available for playback and download
    """

    EMPTY = "EMPTY"
    LOADED = "LOADED"
    PROCESSING = "PROCESSING"
    READY = "READY"


class NoticeVariant(str, Enum):
    """Presentation hint for a notice."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notice(BaseModel):
    """User-visible message describing the outcome of the last action."""

    title: str
    description: str
    variant: NoticeVariant = NoticeVariant.DEFAULT


class SessionSnapshot(BaseModel):
    """
    Point-in-time view of a session.

    Attributes:
        session_id: Session identifier
        state: Current lifecycle state
        closed: Whether the session has been torn down
        filename: Original filename of the loaded video
        mime_type: MIME type of the loaded video
        size_bytes: Size of the loaded video
        original_url: Transient handle URL of the original video
        processed_url: Transient handle URL of the processed video
        pixelation_level: Level the processed video was produced with
        download_filename: Name offered for the processed download
        notice: Outcome of the last action
    """

    session_id: str
    state: SessionState
    closed: bool = False
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: int = Field(default=0, ge=0)
    original_url: Optional[str] = None
    processed_url: Optional[str] = None
    pixelation_level: Optional[int] = None
    download_filename: Optional[str] = None
    notice: Optional[Notice] = None

"""
Data Models
===========

Typed models shared across PixelClip.

Models:
    Media:
        - MediaPayload: Immutable bytes + MIME type of an uploaded file
        - InvalidMediaType: MIME type unusable in a data URI

    Flow:
        - PixelateVideoInput: Processing boundary input
        - PixelateVideoOutput: Processing boundary output

    Session:
        - SessionState: EMPTY, LOADED, PROCESSING, READY
        - Notice: User-visible outcome message
        - SessionSnapshot: Serialisable session view

    API:
        - VideoUpload: Upload request body
        - ProcessRequest: Process request body
"""

from pixelclip.models.media import InvalidMediaType, MediaPayload
from pixelclip.models.flow import (
    MAX_PIXELATION_LEVEL,
    MIN_PIXELATION_LEVEL,
    PixelateVideoInput,
    PixelateVideoOutput,
)
from pixelclip.models.session import Notice, NoticeVariant, SessionSnapshot, SessionState
from pixelclip.models.api import ProcessRequest, VideoUpload

__all__ = [
    # Media
    "MediaPayload",
    "InvalidMediaType",
    # Flow
    "MIN_PIXELATION_LEVEL",
    "MAX_PIXELATION_LEVEL",
    "PixelateVideoInput",
    "PixelateVideoOutput",
    # Session
    "SessionState",
    "Notice",
    "NoticeVariant",
    "SessionSnapshot",
    # API
    "VideoUpload",
    "ProcessRequest",
]

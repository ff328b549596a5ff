"""
Media Payload Model
===================

Internal representation of a user-selected media file.

Design Rules:
    - Immutable once created; a re-upload produces a new payload
    - Carries raw bytes, never an encoded form
    - The filename is informational and excluded from equality
"""

from dataclasses import dataclass, field
from typing import Optional

from pixelclip.errors import PixelClipError


class InvalidMediaType(PixelClipError, ValueError):
    """Raised when a MIME type cannot be carried in a data URI header."""
    pass


@dataclass(frozen=True, slots=True)
class MediaPayload:
    """
    Opaque binary buffer plus its declared MIME type.

    Attributes:
        data: Raw file bytes
        mime_type: Declared MIME type (e.g. "video/mp4")
        filename: Original filename, if known
    """

    data: bytes
    mime_type: str
    filename: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise TypeError("data must be a bytes-like object")
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))
        if "," in self.mime_type:
            raise InvalidMediaType(f"mime_type must not contain ',': {self.mime_type!r}")

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the payload."""
        return (
            f"MediaPayload(mime_type={self.mime_type!r}, "
            f"size={self.size}, filename={self.filename!r})"
        )

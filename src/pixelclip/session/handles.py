"""
Transient Handles
=================

Revocable references to in-memory media, addressed by opaque URLs.

The HandleRegistry plays the part of a browser's object-URL table:
it maps "blob:pixelclip/<id>" URLs to payloads until they are revoked.
Playback surfaces resolve a URL to bytes; only the session controller
creates or revokes handles.

Design Rules:
    - Revocation is idempotent (revoking twice is a no-op)
    - A revoked URL never resolves again
    - close() revokes everything still outstanding
"""

import logging
import uuid
from enum import Enum
from typing import Dict, Union

from pixelclip.errors import PixelClipError
from pixelclip.models.media import MediaPayload


logger = logging.getLogger(__name__)


HANDLE_URL_PREFIX = "blob:pixelclip/"


class HandleRevoked(PixelClipError):
    """Raised when resolving a handle that is unknown or already revoked."""
    pass


class HandleRole(str, Enum):
    """Slot a handle occupies in a session."""

    ORIGINAL = "original"
    PROCESSED = "processed"


def handle_id(url: str) -> str:
    """Strip the URL prefix from a handle URL."""
    if url.startswith(HANDLE_URL_PREFIX):
        return url[len(HANDLE_URL_PREFIX):]
    return url


class TransientHandle:
    """
    Revocable reference to a payload held by a HandleRegistry.

    Attributes:
        url: Opaque "blob:pixelclip/<id>" URL
        role: Slot the handle was created for
        revoked: Whether the handle no longer resolves
    """

    __slots__ = ("url", "role", "_registry")

    def __init__(self, url: str, role: HandleRole, registry: "HandleRegistry") -> None:
        self.url = url
        self.role = role
        self._registry = registry

    @property
    def id(self) -> str:
        return handle_id(self.url)

    @property
    def revoked(self) -> bool:
        return not self._registry.is_live(self.url)

    def resolve(self) -> MediaPayload:
        """Return the referenced payload."""
        return self._registry.resolve(self.url)

    def revoke(self) -> bool:
        """Release the handle. Returns False if it was already released."""
        return self._registry.revoke(self.url)

    def __repr__(self) -> str:
        return f"TransientHandle(url={self.url!r}, role={self.role.value}, revoked={self.revoked})"


class HandleRegistry:
    """
    Table of live transient handles.

    Attributes:
        active_count: Number of handles not yet revoked
        created_count: Total handles ever created
        revoked_count: Total handles revoked

    Example:
        registry = HandleRegistry()
        handle = registry.create(payload, HandleRole.ORIGINAL)
        registry.resolve(handle.url)   # -> payload
        handle.revoke()
        handle.revoke()                # no-op
    """

    def __init__(self) -> None:
        self._entries: Dict[str, MediaPayload] = {}
        self._created_count: int = 0
        self._revoked_count: int = 0

    @property
    def active_count(self) -> int:
        return len(self._entries)

    @property
    def created_count(self) -> int:
        return self._created_count

    @property
    def revoked_count(self) -> int:
        return self._revoked_count

    def create(self, payload: MediaPayload, role: HandleRole) -> TransientHandle:
        """Register a payload and return a new handle for it."""
        url = f"{HANDLE_URL_PREFIX}{uuid.uuid4().hex}"
        self._entries[url] = payload
        self._created_count += 1
        logger.debug(f"Created {role.value} handle {url} for {payload!r}")
        return TransientHandle(url, role, self)

    def is_live(self, url: str) -> bool:
        return url in self._entries

    def resolve(self, url: str) -> MediaPayload:
        """
        Look up the payload behind a handle URL.

        Raises:
            HandleRevoked: If the URL is unknown or revoked
        """
        try:
            return self._entries[url]
        except KeyError:
            raise HandleRevoked(f"Handle is not live: {url}") from None

    def revoke(self, handle: Union[TransientHandle, str]) -> bool:
        """
        Revoke a handle.

        Returns:
            True if the handle was live, False if it was already revoked.
        """
        url = handle.url if isinstance(handle, TransientHandle) else handle
        if self._entries.pop(url, None) is None:
            return False
        self._revoked_count += 1
        logger.debug(f"Revoked handle {url}")
        return True

    def close(self) -> int:
        """
        Revoke all outstanding handles.

        Returns:
            Number of handles revoked.
        """
        revoked = len(self._entries)
        self._entries.clear()
        self._revoked_count += revoked
        if revoked:
            logger.warning(f"HandleRegistry closed with {revoked} outstanding handles")
        return revoked

    def metrics(self) -> dict:
        """
        Get registry metrics for observability.

        Returns:
            Dict with active, created and revoked counts
        """
        return {
            "active_handles": self.active_count,
            "created_handles": self._created_count,
            "revoked_handles": self._revoked_count,
        }

"""
Session Module
==============

Upload session lifecycle and the transient handles it owns.

Components:
    - HandleRegistry / TransientHandle: Revocable references to media
    - SessionController: EMPTY -> LOADED -> PROCESSING -> READY state machine
    - SessionManager: Open sessions of the service
    - download_filename: Name of the processed artifact

Example:
    registry = HandleRegistry()
    session = SessionController(client, registry)

    session.select_file(payload)
    await session.process(10)
    artifact = session.download()
    session.close()
"""

from pixelclip.session.handles import (
    HANDLE_URL_PREFIX,
    HandleRegistry,
    HandleRevoked,
    HandleRole,
    TransientHandle,
    handle_id,
)
from pixelclip.session.controller import (
    DownloadArtifact,
    InvalidFileType,
    NoVideoLoaded,
    ProcessingInProgress,
    ResultNotReady,
    SessionClosed,
    SessionController,
    StaleResult,
    UploadTooLarge,
)
from pixelclip.session.manager import SessionLimitReached, SessionManager, SessionNotFound
from pixelclip.session.naming import download_filename


__all__ = [
    "HANDLE_URL_PREFIX",
    "HandleRegistry",
    "HandleRevoked",
    "HandleRole",
    "TransientHandle",
    "handle_id",
    "DownloadArtifact",
    "InvalidFileType",
    "NoVideoLoaded",
    "ProcessingInProgress",
    "ResultNotReady",
    "SessionClosed",
    "SessionController",
    "StaleResult",
    "UploadTooLarge",
    "SessionLimitReached",
    "SessionManager",
    "SessionNotFound",
    "download_filename",
]

"""
Error Taxonomy
==============

Root of the PixelClip exception hierarchy.

Concrete errors are defined next to the code that raises them:
    - codec:      MalformedRepresentation
    - processing: InvalidParameter, ProcessingFailed, MediaCategoryMismatch
    - session:    InvalidFileType, UploadTooLarge, NoVideoLoaded,
                  ProcessingInProgress, ResultNotReady, StaleResult,
                  SessionClosed, SessionNotFound, SessionLimitReached,
                  HandleRevoked

None of them is fatal to the service. The HTTP layer maps each one
to a status code.
"""


class PixelClipError(Exception):
    """Base class for all PixelClip errors."""
    pass

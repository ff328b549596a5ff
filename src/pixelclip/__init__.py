"""
PixelClip
=========

Upload a video, pick a pixelation level, preview and download the result.

The processing step is a simulation: it returns the uploaded video
unchanged after a level-dependent delay. The package provides the
pieces around it:

Components:
    - codec: MediaPayload <-> "data:<mime>;base64,<data>" transcoding
    - processing: Schema-validated pixelate-video flow over pluggable backends
    - session: Upload session state machine owning revocable media handles
    - main: FastAPI service exposing sessions and the raw flow

Example:
    from pixelclip.main import create_app

    app = create_app()
    # uvicorn pixelclip.main:app
"""

__version__ = "0.1.0"
__author__ = "PixelClip Project"

__all__ = [
    "__version__",
]

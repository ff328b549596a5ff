"""
PixelClip Main Application
==========================

FastAPI entry point for the PixelClip video service.

Components are built explicitly in the lifespan and stored on app.state:
    settings -> processing backend -> ProcessingClient
             -> HandleRegistry -> SessionManager

Endpoints:
    GET    /                          - Service information
    GET    /health                    - Liveness probe
    GET    /metrics                   - Session, handle and processing counters
    POST   /flows/pixelate-video      - Raw processing boundary
    POST   /sessions                  - Open a session
    GET    /sessions/{id}             - Session snapshot
    PUT    /sessions/{id}/video       - Upload a video (base64 JSON)
    POST   /sessions/{id}/process     - Process the loaded video
    GET    /sessions/{id}/download    - Download the processed video
    DELETE /sessions/{id}             - Tear the session down
    GET    /media/{handle_id}         - Bytes behind a live transient handle
    WS     /ws/sessions/{id}          - Snapshot on every state change
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Type
from urllib.parse import quote

from fastapi import Body, Depends, FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from pixelclip.codec import MalformedRepresentation, decode_base64
from pixelclip.config import Settings, load_config, setup_logging
from pixelclip.errors import PixelClipError
from pixelclip.models.api import ProcessRequest, VideoUpload
from pixelclip.models.media import InvalidMediaType, MediaPayload
from pixelclip.processing import (
    InvalidParameter,
    ProcessingClient,
    ProcessingFailed,
    create_processing_backend,
)
from pixelclip.session import (
    HANDLE_URL_PREFIX,
    HandleRegistry,
    HandleRevoked,
    InvalidFileType,
    NoVideoLoaded,
    ProcessingInProgress,
    ResultNotReady,
    SessionClosed,
    SessionLimitReached,
    SessionManager,
    SessionNotFound,
    StaleResult,
    UploadTooLarge,
)
from pixelclip.session.controller import SessionController


logger = logging.getLogger(__name__)


# =============================================================================
# Error Mapping
# =============================================================================

ERROR_STATUS: Dict[Type[PixelClipError], int] = {
    InvalidFileType: 415,
    InvalidMediaType: 415,
    UploadTooLarge: 413,
    MalformedRepresentation: 400,
    InvalidParameter: 422,
    NoVideoLoaded: 409,
    ProcessingInProgress: 409,
    ResultNotReady: 409,
    StaleResult: 409,
    SessionClosed: 410,
    SessionNotFound: 404,
    HandleRevoked: 404,
    SessionLimitReached: 503,
    ProcessingFailed: 502,
}


def status_for(error: PixelClipError) -> int:
    """HTTP status for an error, walking its class hierarchy."""
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


async def handle_pixelclip_error(request: Request, exc: PixelClipError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(
        {"error": type(exc).__name__, "detail": str(exc)},
        status_code=status_code,
    )


# =============================================================================
# Response Helpers
# =============================================================================

def content_disposition(filename: str) -> str:
    """
    Attachment header for a download name.

    The quoted filename is a printable-ASCII fallback with quotes and
    backslashes replaced; filename* carries the exact UTF-8 name.
    """
    fallback = "".join(
        ch if " " <= ch <= "~" and ch not in '"\\' else "_" for ch in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Consume client messages until the client goes away."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def stream_snapshots(websocket: WebSocket, session: SessionController) -> None:
    """
    Push session snapshots to an accepted WebSocket.

    Sends the current snapshot, then one per change. Returns when the
    session closes (the socket is closed too) or when the client
    disconnects; the subscription is dropped either way.
    """
    queue = session.subscribe()
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
    next_snapshot: Optional[asyncio.Task] = None
    try:
        await websocket.send_json(session.snapshot().model_dump(mode="json"))
        while True:
            next_snapshot = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {next_snapshot, disconnected},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if next_snapshot not in done:
                next_snapshot.cancel()
                disconnected.result()
                logger.info(f"Client of session {session.session_id} disconnected")
                return

            snapshot = next_snapshot.result()
            if snapshot is None:
                break
            await websocket.send_json(snapshot.model_dump(mode="json"))

        disconnected.cancel()
        await websocket.close()
    finally:
        disconnected.cancel()
        if next_snapshot is not None:
            next_snapshot.cancel()
        session.unsubscribe(queue)


# =============================================================================
# Dependencies
# =============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_manager(request: Request) -> SessionManager:
    return request.app.state.manager


def get_session(session_id: str, manager: SessionManager = Depends(get_manager)) -> SessionController:
    return manager.get(session_id)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; loaded from config.yaml and env when None

    Returns:
        Configured FastAPI app
    """
    if settings is None:
        settings = load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan manager with graceful shutdown."""
        setup_logging(settings)
        logger.info(f"Starting {settings.app.name} {settings.app.version}")

        backend = create_processing_backend(settings)
        client = ProcessingClient(backend, api_key=settings.processing.api_key)
        registry = HandleRegistry()
        manager = SessionManager(
            client=client,
            registry=registry,
            max_sessions=settings.session.max_sessions,
            max_upload_bytes=settings.session.max_upload_bytes,
            filename_stem_length=settings.session.filename_stem_length,
        )

        app.state.client = client
        app.state.registry = registry
        app.state.manager = manager
        app.state.startup_time = time.time()

        await client.start()
        logger.info("All components started")

        try:
            yield
        finally:
            logger.info("Shutting down gracefully...")
            manager.close_all()
            registry.close()
            await client.close()
            logger.info("Shutdown complete")

    app = FastAPI(
        title="PixelClip",
        description="Upload a video, pick a pixelation level, download the (simulated) result",
        version=settings.app.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(PixelClipError, handle_pixelclip_error)

    _register_routes(app)
    return app


# =============================================================================
# Routes
# =============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.get("/")
    async def root(settings: Settings = Depends(get_settings)) -> JSONResponse:
        """Service information endpoint."""
        return JSONResponse({
            "service": "PixelClip",
            "name": settings.app.name,
            "version": settings.app.version,
            "status": "running",
            "processing_backend": settings.processing.backend,
            "simulation": settings.processing.backend == "simulated",
        })

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Liveness probe - always 200 while the process is running."""
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.time() - request.app.state.startup_time, 1),
        })

    @app.get("/metrics")
    async def metrics(request: Request) -> JSONResponse:
        """Detailed metrics for observability."""
        state = request.app.state
        return JSONResponse({
            "uptime_seconds": round(time.time() - state.startup_time, 1),
            **state.manager.metrics(),
            **state.registry.metrics(),
            "processing": state.client.metrics.to_dict(),
        })

    @app.post("/flows/pixelate-video")
    async def pixelate_video(request: Request, data: Dict[str, Any] = Body(...)) -> JSONResponse:
        """Processing boundary: {videoDataUri, pixelationLevel} -> {processedVideoDataUri}."""
        output = await request.app.state.client.pixelate_video(data)
        return JSONResponse(output.model_dump(by_alias=True))

    @app.post("/sessions", status_code=201)
    async def create_session(manager: SessionManager = Depends(get_manager)) -> JSONResponse:
        session = manager.create()
        return JSONResponse(session.snapshot().model_dump(mode="json"), status_code=201)

    @app.get("/sessions/{session_id}")
    async def get_session_snapshot(session: SessionController = Depends(get_session)) -> JSONResponse:
        return JSONResponse(session.snapshot().model_dump(mode="json"))

    @app.put("/sessions/{session_id}/video")
    async def upload_video(
        upload: VideoUpload,
        session: SessionController = Depends(get_session),
    ) -> JSONResponse:
        """Select a video for the session."""
        payload = MediaPayload(
            data=decode_base64(upload.data),
            mime_type=upload.content_type,
            filename=upload.filename,
        )
        session.select_file(payload)
        return JSONResponse(session.snapshot().model_dump(mode="json"))

    @app.post("/sessions/{session_id}/process")
    async def process_video(
        body: Optional[ProcessRequest] = None,
        session: SessionController = Depends(get_session),
        settings: Settings = Depends(get_settings),
    ) -> JSONResponse:
        """Run the pixelate-video flow on the loaded video."""
        level = settings.session.default_pixelation_level
        if body is not None and body.pixelation_level is not None:
            level = body.pixelation_level
        await session.process(level)
        return JSONResponse(session.snapshot().model_dump(mode="json"))

    @app.get("/sessions/{session_id}/download")
    async def download_video(session: SessionController = Depends(get_session)) -> Response:
        artifact = session.download()
        return Response(
            content=artifact.payload.data,
            media_type=artifact.payload.mime_type,
            headers={"Content-Disposition": content_disposition(artifact.filename)},
        )

    @app.delete("/sessions/{session_id}", status_code=204)
    async def delete_session(session_id: str, manager: SessionManager = Depends(get_manager)) -> Response:
        manager.close(session_id)
        return Response(status_code=204)

    @app.get("/media/{handle_id}")
    async def media(handle_id: str, request: Request) -> Response:
        """Serve the payload behind a live handle for playback."""
        payload = request.app.state.registry.resolve(f"{HANDLE_URL_PREFIX}{handle_id}")
        return Response(content=payload.data, media_type=payload.mime_type)

    @app.websocket("/ws/sessions/{session_id}")
    async def session_events(websocket: WebSocket, session_id: str) -> None:
        """WebSocket endpoint pushing session snapshots."""
        manager: SessionManager = websocket.app.state.manager
        try:
            session = manager.get(session_id)
        except SessionNotFound:
            await websocket.close(code=4404)
            return

        await websocket.accept()
        logger.info(f"Client subscribed to session {session_id}")

        try:
            await stream_snapshots(websocket, session)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning(f"WebSocket error: {e}")
        finally:
            logger.info(f"Client unsubscribed from session {session_id}")


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    settings = app.state.settings
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "pixelclip.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )

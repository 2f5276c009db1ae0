"""FastAPI application exposing the overlay host WebSocket and surface hooks.

A host connects to `/overlay/stream`, sends `showComponent` / `hideComponent` /
`updateComponentData` envelopes, and receives lifecycle and interaction events.
The presentation layer reports readiness, reloads and clicks over HTTP.
"""
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from bridge import SurfaceBridge, WebSocketHostBridge
from config import Settings, configure_logging, get_settings
from controller import Controller
from errors import MalformedEnvelope
from hub import OverlayHub, SessionExists
from schemas import Envelope

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    surface_factory: Optional[Callable[[str], SurfaceBridge]] = None,
) -> FastAPI:
    settings = settings or get_settings()
    hub = OverlayHub(surface_factory, max_pending=settings.max_pending)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info("overlay service starting (auto_ready=%s)", settings.auto_ready)
        yield
        await hub.close_all()
        logger.info("overlay service stopped")

    app = FastAPI(title="Overlay Controller", lifespan=lifespan)
    app.state.hub = hub
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _session(session_id: str) -> Controller:
        controller = hub.get(session_id)
        if controller is None:
            raise HTTPException(status_code=404, detail=f"unknown session {session_id}")
        return controller

    @app.get("/health")
    async def health():
        return {"status": "ok", "sessions": len(hub.sessions)}

    @app.get("/sessions/{session_id}/components")
    async def components(session_id: str):
        return _session(session_id).snapshot()

    @app.post("/sessions/{session_id}/ready", status_code=202)
    async def surface_ready(session_id: str):
        _session(session_id).signal_ready()
        return {"accepted": True}

    @app.post("/sessions/{session_id}/reset", status_code=202)
    async def surface_reset(session_id: str):
        _session(session_id).reset()
        return {"accepted": True}

    @app.post("/sessions/{session_id}/interactions", status_code=202)
    async def interaction(session_id: str, envelope: Envelope):
        controller = _session(session_id)
        try:
            controller.emit_interaction(envelope.type, envelope.data)
        except MalformedEnvelope as e:
            raise HTTPException(status_code=422, detail=str(e))
        return {"accepted": True}

    @app.websocket("/overlay/stream")
    async def overlay_stream(ws: WebSocket, session_id: Optional[str] = None):
        """WebSocket entrypoint for a host driving one overlay session.

        Host commands: `showComponent`, `hideComponent`, `updateComponentData`.
        Surface emits: `webViewReady`, `componentShown`, `componentHidden`, and
        user interaction events.
        """
        await ws.accept()
        try:
            controller = await hub.open(WebSocketHostBridge(ws), session_id)
        except SessionExists:
            logger.warning("rejecting duplicate session %s", session_id)
            await ws.close(code=4409)
            return

        if settings.auto_ready:
            controller.signal_ready()
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                # binary frames go to the codec as bytes; it rejects bad utf-8
                text = message.get("text")
                controller.submit(text if text is not None else message.get("bytes"))
        except WebSocketDisconnect:
            logger.info("host disconnected from session %s", controller.session_id)
        finally:
            await hub.close(controller.session_id)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    s = get_settings()
    uvicorn.run("main:app", host=s.host, port=s.port)

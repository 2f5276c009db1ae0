"""Transport and presentation adapters the Controller talks through.

The host bridge ferries encoded envelopes to the remote host. The surface
bridge is the presentation layer that renders and animates components; the
Controller drives it only after a transition has been committed.
"""
import logging
from typing import Any, Dict, Protocol

from registry import ComponentKind

logger = logging.getLogger(__name__)


class HostBridge(Protocol):
    async def send(self, wire: str) -> None:
        """Deliver one encoded envelope to the host."""


class SurfaceBridge(Protocol):
    async def show(self, kind: ComponentKind, payload: Dict[str, Any]) -> None:
        """Render `kind` with `payload`, playing its entry animation."""

    async def hide(self, kind: ComponentKind) -> None:
        """Play the exit animation and remove `kind` from the surface."""

    async def update(self, kind: ComponentKind, payload: Dict[str, Any]) -> None:
        """Re-render a visible component with a new payload."""

    async def reset(self) -> None:
        """Drop everything currently rendered."""


class WebSocketHostBridge:
    def __init__(self, websocket):
        self.websocket = websocket

    async def send(self, wire: str) -> None:
        await self.websocket.send_text(wire)


class LoggingSurface:
    """Surface used when no renderer is attached; records what would be drawn."""

    def __init__(self, name: str = "surface"):
        self.name = name

    async def show(self, kind: ComponentKind, payload: Dict[str, Any]) -> None:
        logger.info("[%s] show %s %s", self.name, kind.value, payload)

    async def hide(self, kind: ComponentKind) -> None:
        logger.info("[%s] hide %s", self.name, kind.value)

    async def update(self, kind: ComponentKind, payload: Dict[str, Any]) -> None:
        logger.info("[%s] update %s %s", self.name, kind.value, payload)

    async def reset(self) -> None:
        logger.info("[%s] reset", self.name)

"""Session hub: one Controller per connected host."""
import logging
import uuid
from typing import Callable, Dict, Optional

from bridge import HostBridge, LoggingSurface, SurfaceBridge
from controller import Controller

logger = logging.getLogger(__name__)


class SessionExists(Exception):
    pass


class OverlayHub:
    def __init__(self, surface_factory: Optional[Callable[[str], SurfaceBridge]] = None, max_pending: int = 256):
        self.surface_factory = surface_factory or LoggingSurface
        self.max_pending = max_pending
        self.sessions: Dict[str, Controller] = {}

    async def open(self, host: HostBridge, session_id: Optional[str] = None) -> Controller:
        session_id = session_id or uuid.uuid4().hex
        if session_id in self.sessions:
            raise SessionExists(session_id)
        controller = Controller(
            host=host,
            surface=self.surface_factory(session_id),
            session_id=session_id,
            max_pending=self.max_pending,
        )
        self.sessions[session_id] = controller
        await controller.start()
        logger.info("session %s opened", session_id)
        return controller

    def get(self, session_id: str) -> Optional[Controller]:
        return self.sessions.get(session_id)

    async def close(self, session_id: str):
        controller = self.sessions.pop(session_id, None)
        if controller is None:
            return
        await controller.close()
        logger.info("session %s closed", session_id)

    async def close_all(self):
        for session_id in list(self.sessions):
            await self.close(session_id)

import json
from typing import Any, Callable, Dict, List

import pytest
import pytest_asyncio

from controller import Controller


class FakeHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manually advanced clock for timer tests."""

    def __init__(self):
        self.time = 0.0
        self.handles: List[FakeHandle] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.time + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, ms: float):
        target = self.time + ms / 1000.0
        while True:
            due = sorted((h for h in self.live if h.when <= target), key=lambda h: h.when)
            if not due:
                break
            handle = due[0]
            self.time = handle.when
            handle.fired = True
            handle.callback()
        self.time = target


class RecordingHost:
    def __init__(self):
        self.sent: List[str] = []

    async def send(self, wire: str) -> None:
        self.sent.append(wire)

    @property
    def events(self) -> List[Dict[str, Any]]:
        return [json.loads(s) for s in self.sent]

    @property
    def types(self) -> List[str]:
        return [e["type"] for e in self.events]

    def clear(self):
        self.sent.clear()


class RecordingSurface:
    def __init__(self):
        self.calls: List[tuple] = []

    async def show(self, kind, payload):
        self.calls.append(("show", kind.value, payload))

    async def hide(self, kind):
        self.calls.append(("hide", kind.value))

    async def update(self, kind, payload):
        self.calls.append(("update", kind.value, payload))

    async def reset(self):
        self.calls.append(("reset",))


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest_asyncio.fixture
async def controller(host, surface, scheduler):
    c = Controller(host=host, surface=surface, scheduler=scheduler, session_id="test")
    await c.start()
    yield c
    await c.close()


@pytest_asyncio.fixture
async def ready(controller, host):
    """A controller whose surface has signalled readiness, with webViewReady consumed."""
    controller.signal_ready()
    await controller.join()
    host.clear()
    return controller


def wire(event_type: str, **data) -> str:
    return json.dumps({"type": event_type, "data": data})

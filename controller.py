"""Controller: the single actor that owns a session's overlay state.

Inbound wire messages, timer expiries, readiness and user interactions are all
funneled through one asyncio queue, so no two jobs ever mutate component state
concurrently. Transport threads hand messages over with `submit_threadsafe`.
"""
import asyncio
import contextlib
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from bridge import HostBridge, LoggingSurface, SurfaceBridge
from components import Effect, VisibilityStateMachine
from errors import InvalidPayload, MalformedEnvelope, UnknownComponent, UnknownEventType
from events import INBOUND, EventType, build_interaction, decode, encode, make_event
from registry import ComponentKind, controllable_kind
from scheduler import LoopScheduler
from schemas import Envelope, HideComponentData, ShowComponentData, UpdateComponentData

logger = logging.getLogger(__name__)


def _parse_command(model, data: Dict[str, Any]):
    """Resolve the target kind, then validate the rest of the command shape."""
    component = data.get("component")
    if component is None:
        raise UnknownComponent(None, reason="missing component")
    kind = controllable_kind(component)
    try:
        return kind, model.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        raise MalformedEnvelope(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}") from e


class Controller:
    def __init__(
        self,
        host: Optional[HostBridge] = None,
        surface: Optional[SurfaceBridge] = None,
        scheduler=None,
        session_id: str = "default",
        max_pending: int = 256,
    ):
        self.session_id = session_id
        self.max_pending = max_pending
        self.host = host
        self.surface = surface or LoggingSurface(session_id)
        self.scheduler = scheduler or LoopScheduler()
        self.machine = VisibilityStateMachine(self.scheduler, self._schedule_expiry)
        self.ready = False
        self._pending: List[Envelope] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._handlers: Dict[EventType, Callable[[Dict[str, Any]], List[Effect]]] = {
            EventType.ShowComponent: self._handle_show,
            EventType.HideComponent: self._handle_hide,
            EventType.UpdateComponentData: self._handle_update,
        }

    # -------- lifecycle --------

    async def start(self):
        if self._task is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.create_task(self._run())

    async def close(self):
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self.machine.reset()
        self._pending.clear()
        self.ready = False

    async def join(self):
        """Wait until every job queued so far has been processed."""
        await self._queue.join()

    # -------- submission (any caller) --------

    def submit(self, raw: Any):
        """Queue one raw wire message from the host."""
        self._queue.put_nowait(("wire", raw))

    def submit_threadsafe(self, raw: Any):
        """Queue a wire message from a thread other than the session's loop."""
        if self._loop is None:
            raise RuntimeError("controller not started")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, ("wire", raw))

    def handle_incoming(self, envelope: Envelope):
        """Queue one already-decoded host command."""
        self._queue.put_nowait(("envelope", envelope))

    def signal_ready(self):
        """Called by the surface once it can render; emits webViewReady."""
        self._queue.put_nowait(("ready", None))

    def reset(self):
        """Surface reload: cancel timers, hide everything, wait for readiness again."""
        self._queue.put_nowait(("reset", None))

    def emit_interaction(self, event_type: Any, data: Optional[Dict[str, Any]] = None) -> Envelope:
        """Re-emit a user click to the host.

        Raises MalformedEnvelope synchronously when the click is not one of the
        known interaction types or its data has the wrong shape.
        """
        envelope = build_interaction(event_type, data)
        self._queue.put_nowait(("interaction", envelope))
        return envelope

    def _schedule_expiry(self, kind: ComponentKind, generation: int):
        self._queue.put_nowait(("expire", (kind, generation)))

    # -------- actor loop --------

    async def _run(self):
        while True:
            job, arg = await self._queue.get()
            try:
                await self._process(job, arg)
            except Exception:
                logger.exception("session %s: job %s failed", self.session_id, job)
            finally:
                self._queue.task_done()

    async def _process(self, job: str, arg: Any):
        if job == "wire":
            try:
                envelope = decode(arg)
            except UnknownEventType as e:
                logger.debug("session %s: dropping %s", self.session_id, e)
                return
            except MalformedEnvelope as e:
                logger.warning("session %s: dropping malformed envelope: %s", self.session_id, e)
                return
            await self._accept(envelope)
        elif job == "envelope":
            await self._accept(arg)
        elif job == "ready":
            await self._become_ready()
        elif job == "interaction":
            await self._safe_send(arg)
        elif job == "expire":
            kind, generation = arg
            await self._apply(self.machine.expire(kind, generation))
        elif job == "reset":
            await self._reset()

    async def _become_ready(self):
        if self.ready:
            logger.debug("session %s: already ready", self.session_id)
            return
        self.ready = True
        logger.info("session %s: surface ready, flushing %d buffered command(s)", self.session_id, len(self._pending))
        await self._emit(EventType.WebViewReady, {})
        pending, self._pending = self._pending, []
        for envelope in pending:
            await self._dispatch(envelope)

    async def _reset(self):
        logger.info("session %s: reset", self.session_id)
        self.machine.reset()
        self._pending.clear()
        self.ready = False
        try:
            await self.surface.reset()
        except Exception:
            logger.exception("session %s: surface reset failed", self.session_id)

    # -------- dispatch --------

    async def _accept(self, envelope: Envelope):
        """Apply one decoded host command, buffering it until the surface is ready."""
        try:
            t = EventType(envelope.type)
        except ValueError:
            logger.debug("session %s: dropping unknown event type %r", self.session_id, envelope.type)
            return
        if t not in INBOUND:
            logger.warning("session %s: dropping %s, not a host command", self.session_id, t.value)
            return
        if not self.ready:
            if len(self._pending) >= self.max_pending:
                logger.warning(
                    "session %s: pre-ready buffer full (%d), dropping %s", self.session_id, self.max_pending, t.value
                )
                return
            self._pending.append(envelope)
            return
        await self._dispatch(envelope)

    async def _dispatch(self, envelope: Envelope):
        handler = self._handlers[EventType(envelope.type)]
        try:
            effects = handler(envelope.data)
        except (UnknownComponent, InvalidPayload) as e:
            logger.warning("session %s: dropping %s: %s", self.session_id, envelope.type, e)
            return
        except MalformedEnvelope as e:
            logger.warning("session %s: dropping malformed %s: %s", self.session_id, envelope.type, e)
            return
        await self._apply(effects)

    def _handle_show(self, data: Dict[str, Any]) -> List[Effect]:
        kind, cmd = _parse_command(ShowComponentData, data)
        return self.machine.show(kind, cmd.data, cmd.duration)

    def _handle_hide(self, data: Dict[str, Any]) -> List[Effect]:
        kind, _ = _parse_command(HideComponentData, data)
        return self.machine.hide(kind)

    def _handle_update(self, data: Dict[str, Any]) -> List[Effect]:
        kind, cmd = _parse_command(UpdateComponentData, data)
        return self.machine.update(kind, cmd.data)

    # -------- effects / emit --------

    async def _apply(self, effects: List[Effect]):
        for effect in effects:
            if effect.action == "show":
                await self._render(self.surface.show, effect.kind, effect.payload)
                await self._emit(EventType.ComponentShown, {"component": effect.kind.value})
            elif effect.action == "hide":
                await self._render(self.surface.hide, effect.kind)
                await self._emit(EventType.ComponentHidden, {"component": effect.kind.value})
            elif effect.action == "update":
                await self._render(self.surface.update, effect.kind, effect.payload)

    async def _render(self, fn, *args):
        # state is already committed; a broken renderer must not stall the session
        try:
            await fn(*args)
        except Exception:
            logger.exception("session %s: surface %s failed", self.session_id, getattr(fn, "__name__", fn))

    async def _emit(self, event_type: EventType, data: Dict[str, Any]):
        await self._safe_send(make_event(event_type, data))

    async def _safe_send(self, envelope: Envelope) -> bool:
        """Send to the host but never crash the actor."""
        if self.host is None:
            logger.debug("session %s: no host attached, dropping %s", self.session_id, envelope.type)
            return False
        try:
            await self.host.send(encode(envelope))
            return True
        except Exception:
            logger.exception("session %s: failed to send %s", self.session_id, envelope.type)
            return False

    # -------- inspection --------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "ready": self.ready,
            "pending": len(self._pending),
            "components": self.machine.snapshot(),
        }

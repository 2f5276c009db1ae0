"""Visibility state machine for overlay component instances.

Each ComponentKind has exactly one instance for the lifetime of a session:

    Hidden -> Showing -> Visible -> Hiding -> Hidden

The machine itself is synchronous. Operations validate first and mutate only
on success, returning the list of effects the caller must apply to the
surface and report to the host.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from errors import InvalidPayload, PinnedComponent
from registry import REGISTRY, ComponentKind, kind_of, validate_payload

logger = logging.getLogger(__name__)


class VisibilityState(str, Enum):
    Hidden = "Hidden"
    Showing = "Showing"
    Visible = "Visible"
    Hiding = "Hiding"


class Effect(NamedTuple):
    action: str  # "show" | "hide" | "update"
    kind: ComponentKind
    payload: Dict[str, Any]


class ComponentInstance:
    def __init__(self, kind: ComponentKind):
        self.kind = kind
        self.state: VisibilityState = VisibilityState.Hidden
        self.payload: Dict[str, Any] = {}
        # scheduler clock, seconds; None means no auto-hide
        self.expiry: Optional[float] = None
        self.timer = None
        self.generation = 0

    @property
    def pinned(self) -> bool:
        return REGISTRY[self.kind].pinned


class VisibilityStateMachine:
    def __init__(self, scheduler, on_expire: Callable[[ComponentKind, int], None]):
        self.scheduler = scheduler
        self._on_expire = on_expire
        self.instances: Dict[ComponentKind, ComponentInstance] = {k: ComponentInstance(k) for k in ComponentKind}
        self._pin_visible()

    def __getitem__(self, kind) -> ComponentInstance:
        return self.instances[kind_of(kind)]

    def _pin_visible(self):
        for inst in self.instances.values():
            if inst.pinned:
                inst.state = VisibilityState.Visible

    def _controllable(self, kind) -> ComponentInstance:
        inst = self[kind]
        if inst.pinned:
            raise PinnedComponent(inst.kind.value)
        return inst

    # -------- timers --------

    def _cancel_timer(self, inst: ComponentInstance):
        if inst.timer is not None:
            inst.timer.cancel()
            inst.timer = None
        inst.expiry = None
        # any expiry already queued for the old generation is now stale
        inst.generation += 1

    def _arm_timer(self, inst: ComponentInstance, duration_ms: int):
        self._cancel_timer(inst)
        delay = duration_ms / 1000.0
        generation = inst.generation
        kind = inst.kind
        inst.expiry = self.scheduler.now() + delay
        inst.timer = self.scheduler.call_later(delay, lambda: self._on_expire(kind, generation))

    # -------- transitions --------

    def show(self, kind, payload: Optional[Mapping[str, Any]], duration_ms: int) -> List[Effect]:
        """Show a component, replacing its payload and restarting its timer.

        A missing payload reuses the stored one, so earlier updates made while
        the component was hidden take effect here.
        """
        inst = self._controllable(kind)
        if isinstance(duration_ms, bool) or not isinstance(duration_ms, int) or duration_ms < 0:
            raise InvalidPayload(inst.kind.value, f"duration must be a non-negative integer, got {duration_ms!r}")
        normalized = validate_payload(inst.kind, inst.payload if payload is None else payload)

        self._cancel_timer(inst)
        inst.state = VisibilityState.Showing
        inst.payload = normalized
        if duration_ms > 0:
            self._arm_timer(inst, duration_ms)
        # entry animation is a presentation concern; logically we are visible now
        inst.state = VisibilityState.Visible
        logger.debug("show %s duration=%sms", inst.kind.value, duration_ms)
        return [Effect("show", inst.kind, dict(inst.payload))]

    def hide(self, kind) -> List[Effect]:
        inst = self._controllable(kind)
        if inst.state == VisibilityState.Hidden:
            return []
        return self._to_hidden(inst)

    def update(self, kind, data: Mapping[str, Any]) -> List[Effect]:
        """Merge `data` into the stored payload without touching state or timer.

        The merged result is validated as a whole.
        """
        inst = self._controllable(kind)
        if not isinstance(data, Mapping):
            raise InvalidPayload(inst.kind.value, "data must be an object")
        merged = dict(inst.payload)
        merged.update(data)
        inst.payload = validate_payload(inst.kind, merged)
        if inst.state == VisibilityState.Hidden:
            return []
        return [Effect("update", inst.kind, dict(inst.payload))]

    def expire(self, kind, generation: int) -> List[Effect]:
        inst = self[kind]
        if generation != inst.generation or inst.state != VisibilityState.Visible or inst.expiry is None:
            logger.debug("discarding stale timer for %s", inst.kind.value)
            return []
        inst.timer = None
        return self._to_hidden(inst)

    def _to_hidden(self, inst: ComponentInstance) -> List[Effect]:
        inst.state = VisibilityState.Hiding
        self._cancel_timer(inst)
        inst.state = VisibilityState.Hidden
        return [Effect("hide", inst.kind, dict(inst.payload))]

    def reset(self):
        """Cancel all timers and return every timed instance to Hidden."""
        for inst in self.instances.values():
            self._cancel_timer(inst)
            inst.payload = {}
            inst.state = VisibilityState.Hidden
        self._pin_visible()

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        now = self.scheduler.now()
        out = {}
        for kind, inst in self.instances.items():
            remaining = None
            if inst.expiry is not None:
                remaining = max(0, int(round((inst.expiry - now) * 1000)))
            out[kind.value] = {
                "state": inst.state.value,
                "payload": dict(inst.payload),
                "remaining_ms": remaining,
            }
        return out

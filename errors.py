"""Error taxonomy for the overlay protocol.

Every failure is local to the message that caused it: the Controller logs
and drops the offending command, and the session keeps running.
"""


class OverlayError(Exception):
    """Base class for all protocol errors."""


class MalformedEnvelope(OverlayError):
    """Wire data is not a valid `{type, data}` envelope."""


class UnknownEventType(MalformedEnvelope):
    """Envelope `type` is a string outside the closed event set.

    Expected while host and surface versions drift, so callers drop it quietly.
    """

    def __init__(self, event_type: str):
        super().__init__(f"unknown event type {event_type!r}")
        self.event_type = event_type


class UnknownComponent(OverlayError):
    """Command references a component the registry does not know."""

    def __init__(self, component, reason: str = "unknown component"):
        super().__init__(f"{reason}: {component!r}")
        self.component = component


class PinnedComponent(UnknownComponent):
    """Command targets a component that is always visible and not host-controllable."""

    def __init__(self, component):
        super().__init__(component, reason="component is pinned")


class InvalidPayload(OverlayError):
    """Payload does not satisfy the schema of its component kind."""

    def __init__(self, component, detail: str):
        super().__init__(f"invalid payload for {component}: {detail}")
        self.component = component
        self.detail = detail

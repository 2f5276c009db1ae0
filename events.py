"""Message codec: event types, envelope builder, and wire encode/decode.

The wire unit is `{"type": <EventType>, "data": {...}}` serialized as JSON.
"""
import json
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError

from errors import MalformedEnvelope, UnknownEventType
from schemas import (
    BuyNowButtonClickedData,
    Envelope,
    ExploreButtonClickedData,
    FollowButtonClickedData,
    RewardBadgeClickedData,
)


class EventType(str, Enum):
    # host -> surface
    ShowComponent = "showComponent"
    HideComponent = "hideComponent"
    UpdateComponentData = "updateComponentData"
    # surface -> host
    FollowButtonClicked = "followButtonClicked"
    BuyNowButtonClicked = "buyNowButtonClicked"
    ExploreButtonClicked = "exploreButtonClicked"
    RewardBadgeClicked = "rewardBadgeClicked"
    ComponentShown = "componentShown"
    ComponentHidden = "componentHidden"
    WebViewReady = "webViewReady"


INBOUND = frozenset({
    EventType.ShowComponent,
    EventType.HideComponent,
    EventType.UpdateComponentData,
})

INTERACTIONS = frozenset({
    EventType.FollowButtonClicked,
    EventType.BuyNowButtonClicked,
    EventType.ExploreButtonClicked,
    EventType.RewardBadgeClicked,
})

OUTBOUND = INTERACTIONS | {
    EventType.ComponentShown,
    EventType.ComponentHidden,
    EventType.WebViewReady,
}

# event types whose envelope may omit `data`
DATA_OPTIONAL = frozenset({EventType.ExploreButtonClicked, EventType.WebViewReady})


def make_event(event_type: EventType, data: Optional[Dict[str, Any]] = None) -> Envelope:
    return Envelope(type=EventType(event_type).value, data=dict(data or {}))


def encode(envelope: Envelope) -> str:
    return json.dumps({"type": envelope.type, "data": envelope.data}, ensure_ascii=False, separators=(",", ":"))


def decode(raw: Any) -> Envelope:
    """Parse a wire string into an Envelope.

    Raises MalformedEnvelope for unparseable text, a missing or non-string
    `type`, or missing/non-object `data` where the event requires it, and
    UnknownEventType (a MalformedEnvelope) for a `type` outside the closed set.
    Extra keys inside `data` are preserved.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedEnvelope(f"invalid utf-8: {e}") from e
    if not isinstance(raw, str):
        raise MalformedEnvelope(f"expected text, got {type(raw).__name__}")
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedEnvelope(f"invalid json: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedEnvelope("envelope must be an object")

    t = obj.get("type")
    if not isinstance(t, str) or not t:
        raise MalformedEnvelope("missing type")
    try:
        event_type = EventType(t)
    except ValueError:
        raise UnknownEventType(t) from None

    data = obj.get("data")
    if data is None:
        if event_type not in DATA_OPTIONAL:
            raise MalformedEnvelope(f"{t} requires data")
        data = {}
    if not isinstance(data, dict):
        raise MalformedEnvelope(f"{t} data must be an object")

    return Envelope(type=event_type.value, data=data)


_INTERACTION_MODELS = {
    EventType.FollowButtonClicked: FollowButtonClickedData,
    EventType.BuyNowButtonClicked: BuyNowButtonClickedData,
    EventType.ExploreButtonClicked: ExploreButtonClickedData,
    EventType.RewardBadgeClicked: RewardBadgeClickedData,
}


def build_interaction(event_type: Any, data: Optional[Dict[str, Any]] = None) -> Envelope:
    """Shape-check a user interaction raised by the presentation layer.

    The data is returned unmodified inside a new envelope.
    """
    try:
        t = EventType(event_type)
    except ValueError:
        raise UnknownEventType(str(event_type)) from None
    if t not in INTERACTIONS:
        raise MalformedEnvelope(f"{t.value} is not a user interaction")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedEnvelope(f"{t.value} data must be an object")
    try:
        _INTERACTION_MODELS[t].model_validate(data)
    except ValidationError as e:
        raise MalformedEnvelope(f"{t.value}: {e.errors()[0]['msg']}") from e
    return make_event(t, data)

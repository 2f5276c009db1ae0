"""Static catalog of overlay components and their payload schemas.

The registry is the single source of truth for valid `component` strings on
the wire.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Tuple, Type

from pydantic import ValidationError

from errors import InvalidPayload, PinnedComponent, UnknownComponent
from schemas import (
    BrandFollowCardPayload,
    ComponentPayload,
    ExploreButtonPayload,
    ItemCardPayload,
    RewardBadgePayload,
)


class ComponentKind(str, Enum):
    BrandFollowCard = "brandFollowCard"
    ItemCard = "itemCard"
    RewardBadge = "rewardBadge"
    ExploreButton = "exploreButton"


@dataclass(frozen=True)
class ComponentSchema:
    kind: ComponentKind
    model: Type[ComponentPayload]
    # pinned components are always visible and accept no host commands
    pinned: bool = False

    @property
    def required(self) -> Tuple[str, ...]:
        return tuple(n for n, f in self.model.model_fields.items() if f.is_required())

    @property
    def optional(self) -> Tuple[str, ...]:
        return tuple(n for n, f in self.model.model_fields.items() if not f.is_required())


REGISTRY: Dict[ComponentKind, ComponentSchema] = {
    ComponentKind.BrandFollowCard: ComponentSchema(ComponentKind.BrandFollowCard, BrandFollowCardPayload),
    ComponentKind.ItemCard: ComponentSchema(ComponentKind.ItemCard, ItemCardPayload),
    ComponentKind.RewardBadge: ComponentSchema(ComponentKind.RewardBadge, RewardBadgePayload),
    ComponentKind.ExploreButton: ComponentSchema(ComponentKind.ExploreButton, ExploreButtonPayload, pinned=True),
}


_KNOWN_NAMES = frozenset(k.value for k in ComponentKind)


def is_known_kind(name: Any) -> bool:
    if isinstance(name, ComponentKind):
        return True
    return isinstance(name, str) and name in _KNOWN_NAMES


def kind_of(name: Any) -> ComponentKind:
    if not is_known_kind(name):
        raise UnknownComponent(name)
    return ComponentKind(name)


def schema_for(kind: Any) -> ComponentSchema:
    return REGISTRY[kind_of(kind)]


def controllable_kind(name: Any) -> ComponentKind:
    """Resolve a wire `component` string to a kind the host may command."""
    kind = kind_of(name)
    if REGISTRY[kind].pinned:
        raise PinnedComponent(name)
    return kind


def validate_payload(kind: Any, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a full payload and return it normalized with defaults applied.

    Raises InvalidPayload when required fields are missing or a field has the
    wrong primitive type. Unknown extra fields are kept as given.
    """
    schema = schema_for(kind)
    if not isinstance(payload, Mapping):
        raise InvalidPayload(schema.kind.value, "payload must be an object")
    try:
        model = schema.model.model_validate(dict(payload))
    except ValidationError as e:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidPayload(schema.kind.value, detail) from e
    return model.model_dump(exclude_none=True)

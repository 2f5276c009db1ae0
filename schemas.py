"""Pydantic schemas for the overlay envelope and its payloads.

All messages use the same `{type, data}` envelope. Command data models allow
extra fields so newer hosts can add keys without breaking older surfaces.
"""
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr
from typing import Any, Dict, Optional, Union


class Envelope(BaseModel):
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


# --- inbound commands ---

class ShowComponentData(BaseModel):
    model_config = ConfigDict(extra="allow")

    component: StrictStr
    duration: StrictInt = Field(ge=0)
    data: Optional[Dict[str, Any]] = None


class HideComponentData(BaseModel):
    model_config = ConfigDict(extra="allow")

    component: StrictStr


class UpdateComponentData(BaseModel):
    model_config = ConfigDict(extra="allow")

    component: StrictStr
    data: Dict[str, Any]


# --- outbound user interactions ---

class FollowButtonClickedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    brandName: StrictStr


class BuyNowButtonClickedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    productId: StrictStr


class ExploreButtonClickedData(BaseModel):
    model_config = ConfigDict(extra="allow")


class RewardBadgeClickedData(BaseModel):
    model_config = ConfigDict(extra="allow")

    points: Union[StrictStr, StrictInt]


# --- component payloads ---

class ComponentPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    # unknown keys are kept, but only as string or boolean values
    __pydantic_extra__: Dict[str, Union[StrictStr, StrictBool]]


class BrandFollowCardPayload(ComponentPayload):
    brandName: StrictStr
    followers: StrictStr
    logoUrl: Optional[StrictStr] = None
    isVerified: StrictBool = True


class ItemCardPayload(ComponentPayload):
    currentPrice: StrictStr
    productId: Optional[StrictStr] = None
    badge: Optional[StrictStr] = None
    imageUrl: Optional[StrictStr] = None
    originalPrice: Optional[StrictStr] = None
    discount: Optional[StrictStr] = None


class RewardBadgePayload(ComponentPayload):
    points: StrictStr
    label: Optional[StrictStr] = None
    iconUrl: Optional[StrictStr] = None


class ExploreButtonPayload(ComponentPayload):
    label: Optional[StrictStr] = None

"""Request/response and domain models shared by the API and the handlers.

Wire format is camelCase (the web client's convention); Python code uses
snake_case attribute names. Serialize responses with ``by_alias=True``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === Credits ===


class Tier(StrEnum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"


class UsageCredits(_WireModel):
    user_id: str
    tier: Tier = Tier.FREE
    credits_remaining: int = Field(ge=0, default=3)
    credits_monthly_limit: int = Field(gt=0, default=3)
    total_redesigns: int = Field(ge=0, default=0)
    subscription_started_at: datetime | None = None
    subscription_ends_at: datetime | None = None

    @property
    def is_unlimited(self) -> bool:
        return self.tier == Tier.PRO


class CreditsResponse(_WireModel):
    credits: UsageCredits
    features: list[str] = []


# === Styles ===


class StyleOption(_WireModel):
    id: str
    name: str
    description: str
    premium: bool = False


# === Redesign ===


class Customizations(_WireModel):
    """Optional overrides layered on top of the style prompt.

    Defaults mirror the client form's initial state; ``keep`` means
    "leave as in the photo".
    """

    wall_color: str = "keep"
    wall_color_custom: str = ""
    trim_style: str = "keep"
    trim_color: str = "white"
    additional_details: str = ""


class RedesignRequest(_WireModel):
    # image/style are optional here so that missing values surface as
    # InvalidImage / InvalidStyle rather than a generic body error.
    image: str | None = None
    style: str | None = None
    customizations: Customizations | None = None


class RedesignResult(_WireModel):
    redesigned_image: str = Field(min_length=1)
    message: str


# === Analysis ===


class AnalyzeRoomRequest(_WireModel):
    image: str | None = None


class ColorPalette(_WireModel):
    dominant: str
    accent: list[str] = []
    suggested: list[str] = []


class FurnitureSummary(_WireModel):
    detected: list[str] = []
    suggestions: list[str] = []


class RoomAnalysis(_WireModel):
    room_type: str
    current_style: str
    color_palette: ColorPalette
    furniture: FurnitureSummary
    lighting: str
    recommendations: list[str] = []


class AnalyzeRoomResult(_WireModel):
    analysis: RoomAnalysis
    message: str


# === History ===


class RedesignHistoryItem(_WireModel):
    id: uuid.UUID
    user_id: str
    original_image_url: str
    redesigned_image_url: str
    style: str
    customizations: dict[str, Any] = {}
    is_favorite: bool = False
    created_at: datetime
    updated_at: datetime


class SaveRedesignRequest(_WireModel):
    original_image_url: str = Field(min_length=1)
    redesigned_image_url: str = Field(min_length=1)
    style: str = Field(min_length=1)
    customizations: dict[str, Any] = {}
    is_favorite: bool = False


class UpdateFavoriteRequest(_WireModel):
    is_favorite: bool


# === Errors ===


class ErrorResponse(BaseModel):
    error: str
    category: str
    retryable: bool = False
    details: str | None = None

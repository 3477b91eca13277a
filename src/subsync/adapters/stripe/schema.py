"""Pydantic models describing the Stripe webhook payloads we consume."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _metadata_strings(value: object) -> object:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        mapping_value = cast(Mapping[str, object], value)
        return {
            str(key): str(item) for key, item in mapping_value.items() if item is not None
        }
    return value


class StripeBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PricePayload(StripeBaseModel):
    id: str | None = None
    product: str | None = None

    @classmethod
    def coerce(cls, value: object) -> object:
        # Unexpanded prices arrive as bare ids.
        if isinstance(value, str):
            return {"id": value}
        return value


class SubscriptionItemPayload(StripeBaseModel):
    id: str
    price: PricePayload | None = None
    quantity: int = 1
    current_period_start: int | None = None
    current_period_end: int | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    _normalize_metadata = field_validator("metadata", mode="before")(_metadata_strings)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: object) -> object:
        return PricePayload.coerce(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_quantity(cls, value: object) -> object:
        return 1 if value is None else value


class SubscriptionItemList(StripeBaseModel):
    data: list[SubscriptionItemPayload] = Field(default_factory=list)


class PauseCollectionPayload(StripeBaseModel):
    behavior: str = ""
    resumes_at: int | None = None


class SubscriptionPayload(StripeBaseModel):
    id: str
    object: str = "subscription"
    status: str = ""
    cancel_at_period_end: bool | None = None
    pause_collection: PauseCollectionPayload | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    items: SubscriptionItemList = Field(default_factory=SubscriptionItemList)
    current_period_start: int | None = None
    current_period_end: int | None = None

    _normalize_metadata = field_validator("metadata", mode="before")(_metadata_strings)

    @field_validator("status", mode="before")
    @classmethod
    def _blank_status(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("items", mode="before")
    @classmethod
    def _missing_items(cls, value: object) -> object:
        return {} if value is None else value


class EventData(StripeBaseModel):
    object: dict[str, Any]


class EventPayload(StripeBaseModel):
    id: str | None = None
    type: str
    data: EventData

    @property
    def object_type(self) -> str | None:
        value = self.data.object.get("object")
        return value if isinstance(value, str) else None

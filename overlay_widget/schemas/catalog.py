from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_CURRENCY = "EUR"


class WireModel(BaseModel):
    """Base for payloads exchanged with the BFF; fields travel in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Offer(WireModel):
    id: str
    merchant_id: Optional[str] = None
    name: str = ""
    description: str = ""
    currency: str = DEFAULT_CURRENCY
    amount_minor: int = Field(ge=0)
    max_per_order: Optional[int] = Field(default=None, ge=1)
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    active: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("name", "description", "currency", "tags", "active", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class Catalog(WireModel):
    merchant_id: Optional[str] = None
    offers: List[Offer] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def find(self, offer_id: str) -> Optional[Offer]:
        for offer in self.offers:
            if offer.id == offer_id:
                return offer
        return None

    def active_only(self) -> Catalog:
        return Catalog(
            merchant_id=self.merchant_id,
            offers=[offer for offer in self.offers if offer.active],
        )

    @property
    def currency(self) -> str:
        return self.offers[0].currency if self.offers else DEFAULT_CURRENCY


__all__ = ["DEFAULT_CURRENCY", "WireModel", "Offer", "Catalog"]

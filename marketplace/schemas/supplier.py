from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from marketplace.core.constants import DEFAULT_CATEGORY

# Keys a dashboard client echoes back from a loaded product that must not
# end up in the custom attributes bag.
SERVER_MANAGED_KEYS = frozenset(
    {
        "id",
        "supplier",
        "supplierId",
        "supplier_id",
        "row_order",
        "created_at",
        "locations",
        "attributes",
        "customFields",
        "displayPrice",
        "basePrice",
    }
)

PRODUCT_COLUMN_FIELDS = (
    "name",
    "category",
    "technology",
    "type",
    "power_kw",
    "min_order",
    "qty_mw",
    "availability_days",
    "stock_location",
    "validity",
    "datasheet",
    "panfile",
    "ondfile",
    "price_ex_factory",
)


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LocationPriceIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    state: str = Field(min_length=1)
    city: str = Field(min_length=1)
    price: float = Field(ge=0)


class ProductPayload(BaseModel):
    """Editable product fields; unknown keys are kept as custom attributes."""

    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    category: Literal["module", "inverter"] = DEFAULT_CATEGORY
    technology: Optional[str] = None
    type: Optional[str] = None
    power_kw: Optional[float] = None
    min_order: Optional[str] = None
    qty_mw: Optional[float] = None
    availability_days: Optional[int] = None
    stock_location: Optional[str] = None
    validity: Optional[date] = None
    datasheet: Optional[str] = None
    panfile: Optional[str] = None
    ondfile: Optional[str] = None
    price_ex_factory: Optional[float] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    locations: List[LocationPriceIn] = Field(default_factory=list)

    @field_validator(
        "power_kw",
        "qty_mw",
        "availability_days",
        "validity",
        "price_ex_factory",
        mode="before",
    )
    @classmethod
    def _empty_number(cls, value):
        return _blank_to_none(value)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        return _blank_to_none(value) or DEFAULT_CATEGORY

    @field_validator("attributes", "locations", mode="before")
    @classmethod
    def _null_collection(cls, value, info):
        if value is None:
            return {} if info.field_name == "attributes" else []
        return value

    @model_validator(mode="after")
    def _unique_locations(self):
        seen = set()
        for location in self.locations:
            key = (location.state.casefold(), location.city.casefold())
            if key in seen:
                raise ValueError(
                    f"Duplicate location price for {location.city}, {location.state}"
                )
            seen.add(key)
        return self

    def column_values(self) -> dict:
        return {field: getattr(self, field) for field in PRODUCT_COLUMN_FIELDS}

    def custom_attributes(self) -> dict:
        merged = dict(self.attributes)
        for key, value in (self.model_extra or {}).items():
            if key not in SERVER_MANAGED_KEYS:
                merged[key] = value
        return merged

    def location_rows(self) -> list[dict]:
        return [location.model_dump() for location in self.locations]


class ProductUpdatePayload(ProductPayload):
    id: int


class ProductReference(BaseModel):
    id: int


class ReorderItem(BaseModel):
    id: int
    row_order: int = Field(validation_alias=AliasChoices("row_order", "order", "rowOrder"))


class ReorderPayload(BaseModel):
    items: List[ReorderItem] = Field(default_factory=list)


class ProfilePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    company_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("companyName", "company_name"),
    )
    phone: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    about_us: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("aboutUs", "about_us"),
    )
    gallery: List[str] = Field(default_factory=list)

    @field_validator("gallery", mode="before")
    @classmethod
    def _null_gallery(cls, value):
        return [] if value is None else value


class DashboardAction(BaseModel):
    # Shape of both is checked by the dashboard dispatcher.
    action: Optional[str] = None
    data: Any = None


__all__ = [
    "DashboardAction",
    "LocationPriceIn",
    "ProductPayload",
    "ProductReference",
    "ProductUpdatePayload",
    "ProfilePayload",
    "ReorderItem",
    "ReorderPayload",
]

import json
import logging
import math
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from marketplace.core.constants import UNKNOWN_SUPPLIER

logger = logging.getLogger(__name__)

LISTING_FIELDS = frozenset(
    {
        "id",
        "name",
        "supplier",
        "supplierId",
        "category",
        "technology",
        "type",
        "power",
        "moq",
        "qtyMw",
        "availability",
        "stockLocation",
        "validity",
        "basePrice",
        "displayPrice",
        "datasheet",
        "panfile",
        "ondfile",
        "locations",
        "customFields",
    }
)

CATALOG_PRODUCT_COLUMNS = (
    "id",
    "supplier_id",
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
    "row_order",
    "created_at",
)


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _iso(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def parse_attributes(value: Any) -> dict:
    """Attributes bag as a dict; anything malformed becomes ``{}``."""
    if value is None:
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Ignoring malformed product attributes payload.")
            return {}
    if not isinstance(value, Mapping):
        return {}
    return dict(value)


def normalize_locations(value: Any) -> list[dict]:
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Ignoring malformed location pricing payload.")
            return []
    if not isinstance(value, list):
        return []

    locations = []
    for entry in value:
        if not isinstance(entry, Mapping):
            continue
        price = _to_number(entry.get("price"))
        if price is None:
            continue
        locations.append({"state": entry.get("state"), "city": entry.get("city"), "price": price})
    return locations


def compute_display_price(base_price: Any, location_prices: Iterable[Any]) -> float:
    """Effective price shown to buyers.

    Starts from the base ex-factory price (0 when absent); the lowest location
    price replaces it when it is lower or when there is no usable base price.
    """
    display_price = _to_number(base_price) or 0.0
    prices = [price for price in (_to_number(value) for value in location_prices) if price is not None]
    if prices:
        lowest = min(prices)
        if display_price == 0 or lowest < display_price:
            display_price = lowest
    return display_price


def build_listing(row: Mapping[str, Any]) -> dict:
    locations = normalize_locations(row.get("locations"))
    custom_fields = parse_attributes(row.get("attributes"))

    listing = {
        "id": row.get("id"),
        "name": row.get("name"),
        "supplier": row.get("supplier_name") or UNKNOWN_SUPPLIER,
        "supplierId": row.get("supplier_id"),
        "category": row.get("category"),
        "technology": row.get("technology"),
        "type": row.get("type"),
        "power": _to_number(row.get("power_kw")) or 0,
        "moq": row.get("min_order"),
        "qtyMw": _to_number(row.get("qty_mw")),
        "availability": row.get("availability_days"),
        "stockLocation": row.get("stock_location"),
        "validity": _iso(row.get("validity")),
        "basePrice": _to_number(row.get("price_ex_factory")),
        "displayPrice": compute_display_price(
            row.get("price_ex_factory"),
            (location["price"] for location in locations),
        ),
        "datasheet": row.get("datasheet"),
        "panfile": row.get("panfile"),
        "ondfile": row.get("ondfile"),
        "locations": locations,
        "customFields": custom_fields,
    }
    # Custom fields are also surfaced at the top level, but never over a
    # reserved listing key.
    for key, value in custom_fields.items():
        if key not in LISTING_FIELDS:
            listing[key] = value
    return listing


def build_catalog_product(row: Mapping[str, Any]) -> dict:
    product = {column: _iso(row.get(column)) for column in CATALOG_PRODUCT_COLUMNS}
    product["attributes"] = parse_attributes(row.get("attributes"))
    product["locations"] = normalize_locations(row.get("locations"))
    return product


__all__ = [
    "CATALOG_PRODUCT_COLUMNS",
    "LISTING_FIELDS",
    "build_catalog_product",
    "build_listing",
    "compute_display_price",
    "normalize_locations",
    "parse_attributes",
]

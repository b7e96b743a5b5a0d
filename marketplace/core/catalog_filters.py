"""Translate marketplace query parameters into SQL predicates and ordering.

Every user-supplied value ends up as a bound parameter of a SQLAlchemy
expression; placeholder numbering is left to the dialect compiler.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sqlalchemy import Float, String, and_, case, cast, func, or_, select
from sqlalchemy.orm import aliased

from marketplace.core.constants import (
    ALL_SENTINEL,
    DEFAULT_SORT,
    SORT_CATALOG,
    SORT_NEWEST,
    SORT_PRICE_ASC,
    SORT_PRICE_DESC,
)
from marketplace.models.location_price import LocationPrice
from marketplace.models.product import Product
from marketplace.models.supplier import Supplier

DEFAULT_PAGE_SIZE = 12
# Largest OFFSET a 64-bit SQL integer can carry.
_MAX_OFFSET = 2**63 - 1

_MOQ_STRIP_PATTERN = "[^0-9.]"
_MOQ_NUMBER_PATTERN = r"^([0-9]+(\.[0-9]*)?|\.[0-9]+)$"
_LIKE_ESCAPE = "\\"


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _is_unrestricted(value: str) -> bool:
    return not value or value == ALL_SENTINEL


def _parse_float(value: Any) -> Optional[float]:
    text = _clean_text(value)
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_int(value: Any, default: int) -> int:
    number = _parse_float(value)
    if number is None:
        return default
    return int(number)


def _contains_pattern(term: str) -> str:
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


@dataclass
class CatalogFilters:
    query: str = ""
    category: str = ""
    technology: str = ""
    location: str = ""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_qty: Optional[float] = None
    supplier_id: Optional[int] = None
    sort: str = DEFAULT_SORT
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        *,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: Optional[int] = None,
    ) -> "CatalogFilters":
        """Build filters from raw request parameters.

        Parsing never fails: unparsable numbers count as absent, a page below 1
        becomes 1, a non-positive page size falls back to ``default_limit`` and
        the page is capped so its offset fits a 64-bit integer.
        """
        page = _parse_int(params.get("page"), 1)
        if page < 1:
            page = 1
        limit = _parse_int(params.get("limit"), default_limit)
        if limit < 1:
            limit = default_limit
        if max_limit:
            limit = min(limit, max_limit)
        page = min(page, _MAX_OFFSET // limit + 1)

        return cls(
            query=_clean_text(params.get("q")),
            category=_clean_text(params.get("category")),
            technology=_clean_text(params.get("technology")),
            location=_clean_text(params.get("location")),
            min_price=_parse_float(params.get("minPrice")),
            max_price=_parse_float(params.get("maxPrice")),
            min_qty=_parse_float(params.get("minQty")),
            sort=_clean_text(params.get("sort")) or DEFAULT_SORT,
            page=page,
            limit=limit,
        )


@dataclass
class CompiledFilters:
    predicates: list = field(default_factory=list)
    bound_values: list = field(default_factory=list)
    order_by: list = field(default_factory=list)
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def add(self, predicate, *values) -> None:
        self.predicates.append(predicate)
        self.bound_values.extend(values)


def min_order_quantity():
    """Numeric part of ``products.min_order`` or NULL.

    Everything that is not a digit or a decimal point is stripped; the rest is
    cast only when it is a single well-formed decimal, so "1 MWp" gives 1 and
    "1.2.3 MW" or "TBD" give NULL instead of a cast error.
    """
    stripped = func.regexp_replace(
        Product.min_order, _MOQ_STRIP_PATTERN, "", "g", type_=String
    )
    return case(
        (stripped.regexp_match(_MOQ_NUMBER_PATTERN), cast(stripped, Float)),
        else_=None,
    )


def _price_range_predicate(min_price: Optional[float], max_price: Optional[float]):
    pricing = aliased(LocationPrice, name="pp_price")
    base_conditions = [Product.price_ex_factory.isnot(None)]
    location_conditions = [pricing.product_id == Product.id]
    base_values = []
    location_values = []

    if min_price is not None:
        base_conditions.append(Product.price_ex_factory >= min_price)
        location_conditions.append(pricing.price >= min_price)
        base_values.append(min_price)
        location_values.append(min_price)
    if max_price is not None:
        base_conditions.append(Product.price_ex_factory <= max_price)
        location_conditions.append(pricing.price <= max_price)
        base_values.append(max_price)
        location_values.append(max_price)

    location_match = select(pricing.id).where(*location_conditions).exists()
    return or_(and_(*base_conditions), location_match), base_values + location_values


def _location_predicate(pattern: str):
    pricing = aliased(LocationPrice, name="pp_location")
    return (
        select(pricing.id)
        .where(
            pricing.product_id == Product.id,
            or_(
                pricing.city.ilike(pattern, escape=_LIKE_ESCAPE),
                pricing.state.ilike(pattern, escape=_LIKE_ESCAPE),
            ),
        )
        .exists()
    )


def _order_by(sort: str) -> list:
    if sort == SORT_PRICE_ASC:
        pricing = aliased(LocationPrice, name="pp_sort")
        lowest = (
            select(func.min(pricing.price))
            .where(pricing.product_id == Product.id)
            .scalar_subquery()
        )
        return [
            func.coalesce(lowest, Product.price_ex_factory).asc().nulls_last(),
            Product.id.desc(),
        ]
    if sort == SORT_PRICE_DESC:
        pricing = aliased(LocationPrice, name="pp_sort")
        highest = (
            select(func.max(pricing.price))
            .where(pricing.product_id == Product.id)
            .scalar_subquery()
        )
        return [
            func.coalesce(highest, Product.price_ex_factory).desc().nulls_last(),
            Product.id.desc(),
        ]
    if sort == SORT_NEWEST:
        return [Product.created_at.desc(), Product.id.desc()]
    if sort == SORT_CATALOG:
        return [Product.row_order.asc(), Product.id.desc()]
    return [Product.id.desc()]


def compile_filters(filters: CatalogFilters) -> CompiledFilters:
    """Compile filters in a fixed order: search, category, technology, minimum
    order, location, price range, supplier scope."""
    compiled = CompiledFilters(
        order_by=_order_by(filters.sort),
        limit=filters.limit,
        offset=filters.offset,
    )

    if filters.query:
        pattern = _contains_pattern(filters.query)
        compiled.add(
            or_(
                Product.name.ilike(pattern, escape=_LIKE_ESCAPE),
                Supplier.company_name.ilike(pattern, escape=_LIKE_ESCAPE),
            ),
            pattern,
        )

    if not _is_unrestricted(filters.category):
        compiled.add(Product.category == filters.category, filters.category)

    if not _is_unrestricted(filters.technology):
        pattern = _contains_pattern(filters.technology)
        compiled.add(Product.technology.ilike(pattern, escape=_LIKE_ESCAPE), pattern)

    if filters.min_qty:
        compiled.add(min_order_quantity() <= filters.min_qty, filters.min_qty)

    if not _is_unrestricted(filters.location):
        pattern = _contains_pattern(filters.location)
        compiled.add(_location_predicate(pattern), pattern)

    if filters.min_price is not None or filters.max_price is not None:
        predicate, values = _price_range_predicate(filters.min_price, filters.max_price)
        compiled.add(predicate, *values)

    if filters.supplier_id is not None:
        compiled.add(Product.supplier_id == filters.supplier_id, filters.supplier_id)

    return compiled


__all__ = [
    "CatalogFilters",
    "CompiledFilters",
    "DEFAULT_PAGE_SIZE",
    "compile_filters",
    "min_order_quantity",
]

import logging
import math
from typing import Optional

from sqlalchemy import JSON, func, literal_column, select
from sqlalchemy.orm import Session, aliased

from marketplace.core.catalog_filters import CatalogFilters, CompiledFilters, compile_filters
from marketplace.core.listing import build_listing
from marketplace.models.location_price import LocationPrice
from marketplace.models.product import Product
from marketplace.models.supplier import Supplier

logger = logging.getLogger(__name__)


def locations_aggregate(dialect_name: str, pricing):
    """Per-product JSON array of ``{state, city, price}``; ``[]`` when none.

    The FILTER clause drops the all-NULL row produced by the outer join for
    products without location prices.
    """
    pairs = (
        literal_column("'state'"), pricing.state,
        literal_column("'city'"), pricing.city,
        literal_column("'price'"), pricing.price,
    )
    if dialect_name == "postgresql":
        aggregated = func.json_agg(func.json_build_object(*pairs))
        empty = literal_column("'[]'::json")
    else:
        aggregated = func.json_group_array(func.json_object(*pairs))
        empty = literal_column("'[]'")
    return func.coalesce(
        aggregated.filter(pricing.id.isnot(None)),
        empty,
        type_=JSON,
    )


def _dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


def _listing_statement(db: Session, compiled: CompiledFilters):
    pricing = aliased(LocationPrice, name="pp")
    return (
        select(
            Product.id,
            Product.name,
            Supplier.company_name.label("supplier_name"),
            Product.supplier_id,
            Product.category,
            Product.technology,
            Product.type,
            Product.power_kw,
            Product.min_order,
            Product.qty_mw,
            Product.availability_days,
            Product.stock_location,
            Product.validity,
            Product.datasheet,
            Product.panfile,
            Product.ondfile,
            Product.price_ex_factory,
            Product.attributes,
            locations_aggregate(_dialect_name(db), pricing).label("locations"),
            func.count().over().label("full_count"),
        )
        .select_from(Product)
        .outerjoin(Supplier, Product.supplier_id == Supplier.id)
        .outerjoin(pricing, pricing.product_id == Product.id)
        .where(*compiled.predicates)
        .group_by(Product.id, Supplier.company_name)
        .order_by(*compiled.order_by)
        .limit(compiled.limit)
        .offset(compiled.offset)
    )


def count_listings(db: Session, compiled: CompiledFilters) -> int:
    stmt = (
        select(func.count())
        .select_from(Product)
        .outerjoin(Supplier, Product.supplier_id == Supplier.id)
        .where(*compiled.predicates)
    )
    return int(db.execute(stmt).scalar_one())


def search_listings(db: Session, filters: CatalogFilters) -> dict:
    """Run the marketplace query and shape one page of listings.

    The total comes from the window count of the same statement. A page past
    the end has no row to read it from, so the filtered count is queried
    separately in that case only.
    """
    compiled = compile_filters(filters)
    rows = db.execute(_listing_statement(db, compiled)).mappings().all()

    if rows:
        total = int(rows[0]["full_count"])
    elif compiled.offset > 0:
        total = count_listings(db, compiled)
    else:
        total = 0

    logger.debug(
        "Marketplace query matched %s products (page %s, %s predicates)",
        total,
        filters.page,
        len(compiled.predicates),
    )
    return {"items": [build_listing(row) for row in rows], "total": total}


def build_pagination(page: int, limit: int, total_items: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "totalItems": total_items,
        "totalPages": math.ceil(total_items / limit) if limit else 0,
    }


def supplier_profile(supplier: Supplier) -> dict:
    return {
        "companyName": supplier.company_name,
        "email": supplier.email,
        "phone": supplier.phone,
        "website": supplier.website,
        "location": supplier.location,
        "aboutUs": supplier.about_us,
        "gallery": list(supplier.gallery or []),
    }


def load_supplier_profile(db: Session, supplier_id: int) -> Optional[dict]:
    supplier = db.execute(select(Supplier).where(Supplier.id == supplier_id)).scalars().first()
    if supplier is None:
        return None
    return supplier_profile(supplier)


def list_suppliers(db: Session) -> list[dict]:
    product_count = (
        select(func.count(Product.id))
        .where(Product.supplier_id == Supplier.id)
        .scalar_subquery()
    )
    rows = db.execute(
        select(
            Supplier.id,
            Supplier.company_name,
            Supplier.location,
            Supplier.website,
            Supplier.gallery,
            product_count.label("product_count"),
        ).order_by(Supplier.company_name, Supplier.id)
    ).mappings().all()

    return [
        {
            "id": row["id"],
            "companyName": row["company_name"],
            "location": row["location"],
            "website": row["website"],
            "gallery": list(row["gallery"] or []),
            "productCount": int(row["product_count"] or 0),
        }
        for row in rows
    ]


__all__ = [
    "build_pagination",
    "count_listings",
    "list_suppliers",
    "load_supplier_profile",
    "locations_aggregate",
    "search_listings",
    "supplier_profile",
]

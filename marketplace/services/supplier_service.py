import logging

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from marketplace.core.listing import build_catalog_product
from marketplace.models.location_price import LocationPrice
from marketplace.models.product import Product
from marketplace.models.supplier import Supplier
from marketplace.schemas.supplier import (
    ProductPayload,
    ProductUpdatePayload,
    ProfilePayload,
    ReorderItem,
)
from marketplace.services.catalog_service import load_supplier_profile, locations_aggregate

logger = logging.getLogger(__name__)


def load_supplier_catalog(db: Session, supplier_id: int) -> dict:
    """Products of one supplier in manual order, plus the company profile."""
    pricing = aliased(LocationPrice, name="pp")
    stmt = (
        select(
            Product.__table__,
            locations_aggregate(db.get_bind().dialect.name, pricing).label("locations"),
        )
        .select_from(Product)
        .outerjoin(pricing, pricing.product_id == Product.id)
        .where(Product.supplier_id == supplier_id)
        .group_by(Product.id)
        .order_by(Product.row_order.asc(), Product.id.desc())
    )
    rows = db.execute(stmt).mappings().all()
    return {
        "products": [build_catalog_product(row) for row in rows],
        "profile": load_supplier_profile(db, supplier_id) or {},
    }


def _insert_locations(db: Session, product_id: int, payload: ProductPayload) -> None:
    rows = payload.location_rows()
    if not rows:
        return
    db.execute(
        insert(LocationPrice).values(
            [dict(row, product_id=product_id) for row in rows]
        )
    )


def _next_row_order(db: Session, supplier_id: int) -> int:
    return int(
        db.execute(
            select(func.coalesce(func.max(Product.row_order), 0) + 1).where(
                Product.supplier_id == supplier_id
            )
        ).scalar_one()
    )


def create_product(db: Session, supplier_id: int, payload: ProductPayload) -> int:
    try:
        product = Product(
            supplier_id=supplier_id,
            attributes=payload.custom_attributes(),
            row_order=_next_row_order(db, supplier_id),
            **payload.column_values(),
        )
        db.add(product)
        db.flush()
        _insert_locations(db, product.id, payload)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "Created product %s for supplier %s with %s location prices",
        product.id,
        supplier_id,
        len(payload.locations),
        extra={"action": "create_product", "supplier_id": supplier_id, "product_id": product.id},
    )
    return product.id


def update_product(db: Session, supplier_id: int, payload: ProductUpdatePayload) -> None:
    """Replace the editable fields and the whole location price set.

    Location rows are wiped and re-inserted, never merged.
    """
    try:
        result = db.execute(
            update(Product)
            .where(Product.id == payload.id, Product.supplier_id == supplier_id)
            .values(attributes=payload.custom_attributes(), **payload.column_values())
        )
        if result.rowcount == 0:
            db.rollback()
            raise LookupError(f"Product {payload.id} not found")

        db.execute(delete(LocationPrice).where(LocationPrice.product_id == payload.id))
        _insert_locations(db, payload.id, payload)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "Updated product %s for supplier %s",
        payload.id,
        supplier_id,
        extra={"action": "update_product", "supplier_id": supplier_id, "product_id": payload.id},
    )


def delete_product(db: Session, supplier_id: int, product_id: int) -> None:
    # product_pricing rows follow through ON DELETE CASCADE.
    try:
        result = db.execute(
            delete(Product).where(Product.id == product_id, Product.supplier_id == supplier_id)
        )
        if result.rowcount == 0:
            db.rollback()
            raise LookupError(f"Product {product_id} not found")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "Deleted product %s for supplier %s",
        product_id,
        supplier_id,
        extra={"action": "delete_product", "supplier_id": supplier_id, "product_id": product_id},
    )


def reorder_products(db: Session, supplier_id: int, items: list[ReorderItem]) -> int:
    """Apply manual ordering one row at a time inside one transaction.

    Ids that belong to another supplier are left untouched. Returns the number
    of rows updated.
    """
    updated = 0
    try:
        for item in items:
            result = db.execute(
                update(Product)
                .where(Product.id == item.id, Product.supplier_id == supplier_id)
                .values(row_order=item.row_order)
            )
            updated += result.rowcount
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return updated


def update_profile(db: Session, supplier_id: int, payload: ProfilePayload) -> None:
    try:
        result = db.execute(
            update(Supplier)
            .where(Supplier.id == supplier_id)
            .values(
                company_name=payload.company_name,
                phone=payload.phone,
                website=payload.website,
                location=payload.location,
                about_us=payload.about_us,
                gallery=payload.gallery,
            )
        )
        if result.rowcount == 0:
            db.rollback()
            raise LookupError(f"Supplier {supplier_id} not found")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


__all__ = [
    "create_product",
    "delete_product",
    "load_supplier_catalog",
    "reorder_products",
    "update_product",
    "update_profile",
]

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from marketplace.config import get_settings
from marketplace.core.catalog_filters import CatalogFilters
from marketplace.core.constants import SORT_CATALOG
from marketplace.dependencies import get_db
from marketplace.services.catalog_service import (
    build_pagination,
    list_suppliers,
    load_supplier_profile,
    search_listings,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/marketplace", tags=["Marketplace"])


def _parse_filters(params: dict) -> CatalogFilters:
    settings = get_settings()
    return CatalogFilters.from_params(
        params,
        default_limit=settings.MARKETPLACE_DEFAULT_PAGE_SIZE,
        max_limit=settings.MARKETPLACE_MAX_PAGE_SIZE,
    )


@router.get("")
def browse_marketplace(
    q: str | None = Query(None, description="Product or supplier name"),
    category: str | None = Query(None, description="module | inverter | All"),
    technology: str | None = Query(None, description="Technology substring"),
    location: str | None = Query(None, description="City or state substring"),
    min_price: str | None = Query(None, alias="minPrice"),
    max_price: str | None = Query(None, alias="maxPrice"),
    min_qty: str | None = Query(None, alias="minQty", description="Minimum order ceiling"),
    sort: str | None = Query(None, description="price_asc | price_desc | newest"),
    page: str | None = Query(None),
    limit: str | None = Query(None),
    db: Session = Depends(get_db),
):
    filters = _parse_filters(
        {
            "q": q,
            "category": category,
            "technology": technology,
            "location": location,
            "minPrice": min_price,
            "maxPrice": max_price,
            "minQty": min_qty,
            "sort": sort,
            "page": page,
            "limit": limit,
        }
    )
    try:
        result = search_listings(db, filters)
    except Exception:
        logger.exception("Marketplace query failed", extra={"path": "/api/marketplace"})
        return JSONResponse(status_code=500, content={"error": "Failed to fetch market data"})

    return {
        "success": True,
        "data": result["items"],
        "pagination": build_pagination(filters.page, filters.limit, result["total"]),
    }


@router.get("/suppliers")
def browse_suppliers(db: Session = Depends(get_db)):
    try:
        suppliers = list_suppliers(db)
    except Exception:
        logger.exception("Supplier directory query failed")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch suppliers"})
    return {"success": True, "data": suppliers}


@router.get("/suppliers/{supplier_id}")
def supplier_storefront(
    supplier_id: int,
    page: str | None = Query(None),
    limit: str | None = Query(None),
    db: Session = Depends(get_db),
):
    filters = _parse_filters({"page": page, "limit": limit, "sort": SORT_CATALOG})
    filters.supplier_id = supplier_id
    try:
        profile = load_supplier_profile(db, supplier_id)
        if profile is None:
            return JSONResponse(status_code=404, content={"error": "Supplier not found"})
        result = search_listings(db, filters)
    except Exception:
        logger.exception("Supplier storefront query failed", extra={"supplier_id": supplier_id})
        return JSONResponse(status_code=500, content={"error": "Failed to fetch supplier"})

    return {
        "success": True,
        "profile": profile,
        "data": result["items"],
        "pagination": build_pagination(filters.page, filters.limit, result["total"]),
    }


__all__ = ["router"]

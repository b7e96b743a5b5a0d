from marketplace.services.catalog_service import list_suppliers, search_listings
from marketplace.services.storage_service import store_upload
from marketplace.services.supplier_service import load_supplier_catalog

__all__ = [
    "list_suppliers",
    "load_supplier_catalog",
    "search_listings",
    "store_upload",
]

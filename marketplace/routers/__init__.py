from marketplace.routers.health import router as health_router
from marketplace.routers.marketplace import router as marketplace_router
from marketplace.routers.supplier_dashboard import router as supplier_dashboard_router
from marketplace.routers.upload import router as upload_router

__all__ = [
    "health_router",
    "marketplace_router",
    "supplier_dashboard_router",
    "upload_router",
]

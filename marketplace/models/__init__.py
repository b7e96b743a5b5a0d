import importlib

from marketplace.models.location_price import LocationPrice
from marketplace.models.product import Product
from marketplace.models.supplier import Supplier


def import_all_models() -> None:
    for module_name in (
        "marketplace.models.location_price",
        "marketplace.models.product",
        "marketplace.models.supplier",
    ):
        importlib.import_module(module_name)


__all__ = [
    "LocationPrice",
    "Product",
    "Supplier",
    "import_all_models",
]

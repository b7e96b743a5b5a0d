from typing import Optional

from fastapi import Header

from marketplace.core.security import SupplierIdentity, authenticate_supplier
from marketplace.database.session import get_db


def require_supplier(authorization: Optional[str] = Header(None)) -> SupplierIdentity:
    return authenticate_supplier(authorization)


__all__ = ["get_db", "require_supplier"]

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from marketplace.core.security import SupplierIdentity
from marketplace.dependencies import get_db, require_supplier
from marketplace.schemas.supplier import (
    DashboardAction,
    ProductPayload,
    ProductReference,
    ProductUpdatePayload,
    ProfilePayload,
    ReorderPayload,
)
from marketplace.services import supplier_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/supplierdashboard", tags=["Supplier Dashboard"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: ValueError) -> str:
    if isinstance(exc, ValidationError):
        messages = []
        for error in exc.errors():
            field = " -> ".join(str(part) for part in error["loc"]) or "data"
            messages.append(f"{field}: {error['msg']}")
        return "; ".join(messages)
    return str(exc)


def _reorder_products(db: Session, supplier_id: int, data: dict) -> dict:
    payload = ReorderPayload.model_validate(data)
    supplier_service.reorder_products(db, supplier_id, payload.items)
    return {"success": True}


def _update_profile(db: Session, supplier_id: int, data: dict) -> dict:
    supplier_service.update_profile(db, supplier_id, ProfilePayload.model_validate(data))
    return {"success": True}


def _create_product(db: Session, supplier_id: int, data: dict) -> dict:
    new_id = supplier_service.create_product(db, supplier_id, ProductPayload.model_validate(data))
    return {"success": True, "newId": new_id}


def _update_product(db: Session, supplier_id: int, data: dict) -> dict:
    supplier_service.update_product(db, supplier_id, ProductUpdatePayload.model_validate(data))
    return {"success": True}


def _delete_product(db: Session, supplier_id: int, data: dict) -> dict:
    reference = ProductReference.model_validate(data)
    supplier_service.delete_product(db, supplier_id, reference.id)
    return {"success": True}


ACTION_HANDLERS = {
    "reorder_products": _reorder_products,
    "update_profile": _update_profile,
    "create_product": _create_product,
    "update_product": _update_product,
    "delete_product": _delete_product,
}


@router.get("")
def read_dashboard(
    supplier_id: str | None = Query(None, alias="supplierId"),
    identity: SupplierIdentity = Depends(require_supplier),
    db: Session = Depends(get_db),
):
    if supplier_id is None or not supplier_id.strip():
        return _error(400, "ID required")
    try:
        requested_id = int(supplier_id)
    except ValueError:
        return _error(400, "supplierId must be an integer")
    if requested_id != identity.supplier_id:
        return _error(403, "Not allowed to read another supplier's dashboard")

    try:
        return supplier_service.load_supplier_catalog(db, requested_id)
    except Exception:
        logger.exception("Dashboard read failed", extra={"supplier_id": requested_id})
        return _error(500, "Failed")


@router.post("")
def dashboard_action(
    payload: DashboardAction,
    identity: SupplierIdentity = Depends(require_supplier),
    db: Session = Depends(get_db),
):
    handler = ACTION_HANDLERS.get(payload.action or "")
    if handler is None:
        return _error(400, "Invalid Action")
    data = {} if payload.data is None else payload.data
    if not isinstance(data, dict):
        return _error(400, "data: Input should be an object")

    try:
        return handler(db, identity.supplier_id, data)
    except ValueError as exc:
        return _error(400, _validation_message(exc))
    except LookupError as exc:
        return _error(404, str(exc))
    except Exception:
        logger.exception(
            "Dashboard action failed",
            extra={"action": payload.action, "supplier_id": identity.supplier_id},
        )
        return _error(500, "Server Error")


__all__ = ["ACTION_HANDLERS", "router"]

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from marketplace.core.security import SupplierIdentity
from marketplace.dependencies import require_supplier
from marketplace.services.storage_service import read_upload, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])


@router.post("")
def upload_file(
    file: UploadFile = File(..., description="Datasheet, PAN/OND file or image"),
    identity: SupplierIdentity = Depends(require_supplier),
):
    try:
        filename = file.filename or ""
        data = read_upload(file.file, filename, file.content_type)
        stored = store_upload(
            filename,
            data,
            identity.supplier_id,
            content_type=file.content_type,
        )
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except OSError:
        logger.exception("Upload could not be written", extra={"supplier_id": identity.supplier_id})
        return JSONResponse(status_code=500, content={"error": "Failed to store file."})
    finally:
        file.file.close()
    return {"url": stored.url}


__all__ = ["router"]

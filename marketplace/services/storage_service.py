import logging
import secrets
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from marketplace.config import get_settings
from marketplace.core.constants import ALLOWED_UPLOAD_EXTENSIONS

logger = logging.getLogger(__name__)

_MAX_STEM_LENGTH = 60
_READ_CHUNK_BYTES = 1024 * 1024


@dataclass
class StoredFile:
    path: Path
    url: str
    size: int


def _sanitize_stem(value):
    if not value:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    sanitized = []
    for char in text:
        if char.isalnum() or char in ("-", "_"):
            sanitized.append(char)
        else:
            sanitized.append("_")
    return "".join(sanitized).strip("_")[:_MAX_STEM_LENGTH]


def _upload_extension(filename):
    suffix = PurePosixPath(str(filename or "").replace("\\", "/")).suffix.lower()
    if suffix not in ALLOWED_UPLOAD_EXTENSIONS:
        allowed = ", ".join(ALLOWED_UPLOAD_EXTENSIONS)
        raise ValueError(f"Unsupported file type. Allowed: {allowed}")
    return suffix


def _size_limit(extension, content_type):
    settings = get_settings()
    if extension == ".pdf" or (content_type or "").lower() == "application/pdf":
        return settings.UPLOAD_MAX_PDF_BYTES, "PDF files"
    return settings.UPLOAD_MAX_FILE_BYTES, "Files"


def _too_large(limit, label):
    return ValueError(f"{label} must be {limit / (1024 * 1024):g} MB or smaller.")


def read_upload(stream, filename: str, content_type: Optional[str] = None) -> bytes:
    """Read an upload stream in chunks, stopping as soon as it exceeds its size limit."""
    limit, label = _size_limit(_upload_extension(filename), content_type)
    chunks = []
    total = 0
    while True:
        chunk = stream.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise _too_large(limit, label)
        chunks.append(chunk)
    return b"".join(chunks)


def public_url(relative_path: str, base_url: Optional[str] = None) -> str:
    """URL of a stored object, absolute when a public base URL is configured."""
    settings = get_settings()
    prefix = "/" + settings.UPLOAD_URL_PREFIX.strip("/")
    path = prefix + "/" + relative_path.lstrip("/")
    if base_url is None:
        base_url = settings.UPLOAD_PUBLIC_BASE_URL
    base_value = str(base_url or "").strip()
    if not base_value:
        return path
    return base_value.rstrip("/") + path


def ensure_upload_dir(path=None) -> Path:
    upload_dir = Path(path or get_settings().UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def store_upload(
    filename: str,
    data: bytes,
    owner_id: int,
    *,
    content_type: Optional[str] = None,
    upload_dir=None,
) -> StoredFile:
    """Validate an uploaded document or image and write it under the owner's folder.

    Raises ``ValueError`` for empty files, unsupported extensions and files
    above ``UPLOAD_MAX_PDF_BYTES`` (PDFs) or ``UPLOAD_MAX_FILE_BYTES``.
    """
    extension = _upload_extension(filename)
    if not data:
        raise ValueError("Uploaded file is empty.")

    limit, label = _size_limit(extension, content_type)
    if len(data) > limit:
        raise _too_large(limit, label)

    stem = _sanitize_stem(PurePosixPath(str(filename).replace("\\", "/")).stem) or "file"
    stored_name = f"{stem}-{secrets.token_hex(6)}{extension}"
    relative_path = f"{owner_id}/{stored_name}"

    target_dir = ensure_upload_dir(upload_dir) / str(owner_id)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / stored_name
    target.write_bytes(data)

    logger.info(
        "Stored upload %s (%s bytes)",
        relative_path,
        len(data),
        extra={"action": "upload", "supplier_id": owner_id},
    )
    return StoredFile(path=target, url=public_url(relative_path), size=len(data))


__all__ = ["StoredFile", "ensure_upload_dir", "public_url", "read_upload", "store_upload"]

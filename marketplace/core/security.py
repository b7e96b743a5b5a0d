from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import HTTPException, status

from marketplace.config import get_settings

SUPPLIER_CLAIM = "supplier_id"


@dataclass(frozen=True)
class SupplierIdentity:
    supplier_id: int
    claims: dict


def _get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_jwt(token: str) -> dict:
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise _unauthorized("JWT auth is not configured")

    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise _unauthorized("Invalid JWT") from exc


def create_access_token(
    supplier_id: int,
    *,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[dict] = None,
) -> str:
    """Sign a bearer token that identifies one supplier."""
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set to issue tokens")

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    payload = dict(extra_claims or {})
    payload.update(
        {
            "sub": str(supplier_id),
            SUPPLIER_CLAIM: int(supplier_id),
            "iat": now,
            "exp": now + expires_delta,
        }
    )
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    if settings.JWT_ISSUER:
        payload["iss"] = settings.JWT_ISSUER
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def authenticate_supplier(authorization: Optional[str]) -> SupplierIdentity:
    """Resolve the calling supplier from an ``Authorization: Bearer`` header.

    The supplier id always comes from the verified token, never from the
    request body.
    """
    token = _get_bearer_token(authorization)
    if not token:
        raise _unauthorized("Not authenticated")

    payload = _decode_jwt(token)
    raw_id = payload.get(SUPPLIER_CLAIM, payload.get("sub"))
    try:
        supplier_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise _unauthorized("Token does not identify a supplier") from exc
    return SupplierIdentity(supplier_id=supplier_id, claims=payload)


__all__ = [
    "SUPPLIER_CLAIM",
    "SupplierIdentity",
    "authenticate_supplier",
    "create_access_token",
]

from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.core.config import settings
from app.core.security import decode_jwt

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TenantContext:
    tenant_id: uuid.UUID
    user_id: uuid.UUID | None
    email: str
    role: str


def get_current_admin(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    try:
        return decode_jwt(creds.credentials, settings.ADMIN_JWT_SECRET)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _claim_uuid(admin: dict, claim: str) -> uuid.UUID | None:
    raw = admin.get(claim)
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None


def tenant_context_from_claims(admin: dict) -> TenantContext:
    tenant_id = _claim_uuid(admin, "tenant_id")
    if tenant_id is None:
        raise HTTPException(status_code=401, detail="Token has no tenant")
    return TenantContext(
        tenant_id=tenant_id,
        user_id=_claim_uuid(admin, "sub"),
        email=str(admin.get("email") or "").strip(),
        role=str(admin.get("role") or "").upper(),
    )

from __future__ import annotations

from typing import Any, Literal

from fastapi import Depends, HTTPException, Request
from pydantic import BaseModel

Role = Literal["regular", "admin"]

ROLE_CLAIM = "custom:role"


class Identity(BaseModel):
    user_id: str
    role: Role = "regular"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _jwt_claims(request: Request) -> dict[str, Any]:
    # Mangum exposes the raw API Gateway event on the ASGI scope
    event = request.scope.get("aws.event") or {}
    authorizer = event.get("requestContext", {}).get("authorizer") or {}
    claims = authorizer.get("jwt", {}).get("claims")
    return claims if isinstance(claims, dict) else {}


def current_identity(request: Request) -> Identity:
    """Identity established by the API Gateway JWT authorizer; trusted as-is."""
    claims = _jwt_claims(request)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    role = "admin" if claims.get(ROLE_CLAIM) == "admin" else "regular"
    return Identity(user_id=str(user_id), role=role)


def require_admin(identity: Identity = Depends(current_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized as an admin")
    return identity

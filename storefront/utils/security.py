# storefront/utils/security.py
# Decodes the signed session token issued by the auth service.
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from storefront.utils.settings import AUTH_COOKIE_NAME, JWT_ALGORITHM, JWT_SECRET
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_ROLE = "ADMIN"


def _token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(AUTH_COOKIE_NAME)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"Token verification failed: {e}")
        return None
    if not payload.get("userId"):
        return None
    return {"userId": str(payload["userId"]), "role": payload.get("role") or "USER"}


def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Guest-accessible endpoints: an invalid or missing token means guest."""
    token = _token_from_request(request)
    if not token:
        return None
    return decode_token(token)


def require_user(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Dict[str, Any]:
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


def require_admin(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    if user.get("role") != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user

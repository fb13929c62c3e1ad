from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from medicare_api.accounts import is_admin
from medicare_api.config import get_settings
from medicare_api.database import get_db
from medicare_api.logging_config import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def issue_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign an access token carrying the user's email.

    Args:
        email: Identity to embed in the ``email`` claim
        expires_delta: Lifetime override (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = {"email": email, "iat": now, "exp": expire}
    return jwt.encode(claims, settings.ACCESS_TOKEN, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and verify a token. Raises JWTError when invalid or expired."""
    settings = get_settings()
    return jwt.decode(token, settings.ACCESS_TOKEN, algorithms=[settings.JWT_ALGORITHM])


def verify_jwt(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """
    FastAPI dependency requiring a valid bearer token.

    Raises:
        HTTPException 401: If the Authorization header is missing
        HTTPException 403: If the header is not a bearer token or the token cannot be verified
    """
    if credentials is None and request.headers.get("Authorization"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden Access")

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded = decode_token(credentials.credentials)
    except JWTError as exc:
        logger.warning("token_rejected", reason=str(exc))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden Access")

    if not decoded.get("email"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden Access")

    return decoded


def verify_admin(decoded: Dict[str, Any] = Depends(verify_jwt), db: Session = Depends(get_db)) -> Dict[str, Any]:
    """FastAPI dependency requiring the token's user to hold the admin role."""
    if not is_admin(db, decoded["email"]):
        logger.warning("admin_access_denied", email=decoded["email"])
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden Access")
    return decoded

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from fastapi import Header, HTTPException
from jose import JWTError, jwt
from passlib.context import CryptContext

logger = structlog.get_logger(__name__)

# =====================
# Auth / Security Setup
# =====================
SECRET_KEY = os.getenv("JWT_SECRET", "super-secret-key-change")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 12))

# pbkdf2_sha256 keeps us off the bcrypt C extension
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@portfolio.dev")
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH") or pwd_context.hash(os.getenv("ADMIN_PASSWORD", "admin123"))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def authenticate_admin(email: str, password: str) -> bool:
    if email.lower() != ADMIN_EMAIL.lower() or not verify_password(password, ADMIN_PASSWORD_HASH):
        logger.warning("admin_login_failed", email=email)
        return False
    logger.info("admin_login", email=email)
    return True


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def _decode_admin(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    email: Optional[str] = payload.get("sub")
    role: Optional[str] = payload.get("role")
    if email != ADMIN_EMAIL or role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return {"email": email, "role": role}


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1]


def get_current_admin(authorization: Optional[str] = Header(None)) -> dict:
    token = _bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    return _decode_admin(token)


def get_optional_admin(authorization: Optional[str] = Header(None)) -> Optional[dict]:
    """Admin identity when a valid token is sent, None for anonymous visitors."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    try:
        return _decode_admin(token)
    except HTTPException:
        return None

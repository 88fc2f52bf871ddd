"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes

The token travels in an HttpOnly cookie (settings.jwt_cookie_name, "jwt"
by default) and carries sub (user id), email and role claims.
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, Response, status
from fastapi.security import APIKeyCookie

from app.core.config import get_settings
from app.services.mongo_service import StudentStore

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Cookie token extractor; we raise our own 401 below
cookie_scheme = APIKeyCookie(name=settings.jwt_cookie_name, auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.jwt_cookie_name,
        value=token,
        httponly=True,
        secure=settings.jwt_cookie_secure,
        samesite="lax",
        max_age=settings.jwt_expire_minutes * 60,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.jwt_cookie_name, path="/")


def get_student_store() -> StudentStore:
    return StudentStore()


def get_current_user(
    token: Optional[str] = Depends(cookie_scheme),
    students: StudentStore = Depends(get_student_store),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
    )

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = decode_token(token)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user exists
    student = students.get_by_id(user_id)
    if not student:
        raise credentials_exception

    if not student.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account deactivated")

    return {"user_id": student["id"], "email": student["email"], "role": student.get("role")}


def ensure_can_access(user: dict, user_id: str) -> None:
    """Users may read/modify their own data; HR accounts may access anyone's."""
    if user["user_id"] != user_id and user.get("role") != "hr":
        raise HTTPException(status_code=403, detail="Not allowed to access another user's data")

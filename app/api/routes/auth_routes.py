"""
Authentication Routes

POST /auth/signup - Register new account
POST /auth/login  - Login; JWT is set as an HttpOnly cookie
POST /auth/logout - Clear the auth cookie
GET  /auth/me     - Get current user info
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Response
from pymongo.errors import DuplicateKeyError

from app.core.auth import (
    hash_password, verify_password, create_access_token, get_current_user,
    get_student_store, set_auth_cookie, clear_auth_cookie,
)
from app.schemas.schemas import (
    SignupRequest, LoginRequest, LoginResponse, UserResponse, MessageResponse
)
from app.services.mongo_service import StudentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=UserResponse, status_code=201)
def signup(request: SignupRequest, students: StudentStore = Depends(get_student_store)):
    """Register a new account. Login afterwards to get the auth cookie."""
    email = request.email.lower()
    if students.email_exists(email):
        raise HTTPException(status_code=400, detail="Email already registered")

    data = request.model_dump(exclude={"password", "email"})
    data["role"] = request.role.value
    data["email"] = email
    data["password_hash"] = hash_password(request.password)
    data.setdefault("certifications", [])
    data.setdefault("education", [])
    data.setdefault("experience", [])

    try:
        user_id = students.insert(data)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already registered")

    logger.info("New %s account registered: %s", data["role"], user_id)
    return students.get_by_id(user_id)


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, response: Response, students: StudentStore = Depends(get_student_store)):
    """Login; the JWT comes back in the `jwt` cookie."""
    student = students.get_by_email_with_password(request.email)

    if not student or not verify_password(request.password, student.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not student.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account deactivated")

    token = create_access_token(
        data={"sub": student["id"], "email": student["email"], "role": student.get("role")}
    )
    set_auth_cookie(response, token)
    students.touch_login(student["id"])

    student.pop("password_hash", None)
    return LoginResponse(user=UserResponse.model_validate(student))


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    clear_auth_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
def get_me(user: dict = Depends(get_current_user), students: StudentStore = Depends(get_student_store)):
    """Get current authenticated user's info."""
    return students.get_by_id(user["user_id"])

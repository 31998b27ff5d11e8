"""Auth: register, login, logout and current user.

Trust boundary only: staff prove identity once and then carry a signed
token in an httpOnly cookie (web client) or a Bearer header (API clients).
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.security import verify_password, get_password_hash, create_access_token
from app.models.franchise import Franchise
from app.models.user import User
from app.schemas.user import UserCreate, UserLogin, UserResponse, Token

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserCreate, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Register a staff user and sign them in.

    Password requirements: MIN_PASSWORD_LENGTH characters, at least one number.
    """
    if db.query(User).filter((User.username == data.username) | (User.email == data.email)).first():
        raise ConflictError("Username or email already registered")

    errors = []
    if len(data.password) < settings.MIN_PASSWORD_LENGTH:
        errors.append({
            "field": "password",
            "message": f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
        })
    if settings.REQUIRE_NUMBERS and not any(c.isdigit() for c in data.password):
        errors.append({"field": "password", "message": "Password must contain at least one number"})
    if errors:
        raise ValidationError("Invalid user data", errors=errors)

    if data.franchise_id is not None and db.get(Franchise, data.franchise_id) is None:
        raise NotFoundError("Franchise", data.franchise_id)

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        username=data.username,
        email=data.email,
        franchise_id=data.franchise_id,
        hashed_password=get_password_hash(data.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    _set_session_cookie(response, create_access_token(subject=str(user.id)))
    AuditLog.log_authentication("register", user.username, _client_ip(request), True)
    return user


@router.post("/login", response_model=Token)
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Login and set the token in an httpOnly cookie; also returned for API clients.

    Generic error message to prevent user enumeration.
    """
    user = db.query(User).filter(User.username == data.username).first()
    if not user or not user.is_active or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("login", data.username, _client_ip(request), False, reason="Bad credentials")
        raise AuthenticationError("Invalid username or password")

    user.last_login = datetime.now(timezone.utc)
    db.commit()

    token = create_access_token(subject=str(user.id))
    _set_session_cookie(response, token)
    AuditLog.log_authentication("login", user.username, _client_ip(request), True)
    return Token(access_token=token)


@router.post("/logout")
def logout(request: Request, response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("logout", current_user.username, _client_ip(request), True)
    return {"message": "Logged out successfully"}


@router.get("/user", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user

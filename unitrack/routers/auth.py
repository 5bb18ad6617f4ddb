from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
import logging
from unitrack.config import Settings, get_app_settings
from unitrack.database import get_db
from unitrack.errors import AuthenticationError, ConflictError
from unitrack.models import User, UserRole, Student
from unitrack.responses import respond
from unitrack.serializers import serialize_user
from unitrack.services.access_guard import AccessGuard, Principal

logger = logging.getLogger(__name__)

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role: UserRole


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password using bcrypt"""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password using bcrypt"""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {
        # 'sub' must be a string per the JWT standard
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Principal:
    """Turn a session token into a principal, or raise AuthenticationError"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        raise AuthenticationError("No valid authentication token")

    try:
        return Principal(
            id=int(payload["sub"]),
            email=payload.get("email", ""),
            role=UserRole(payload.get("role")),
            first_name=payload.get("first_name", ""),
            last_name=payload.get("last_name", ""),
        )
    except (KeyError, ValueError, TypeError):
        logger.info(f"Session token with malformed claims: {sorted(payload.keys())}")
        raise AuthenticationError("No valid authentication token")


def get_current_user(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Principal:
    # Cookie first, then Authorization: Bearer
    token = request.cookies.get(settings.AUTH_COOKIE_NAME) or bearer_token
    if not token:
        raise AuthenticationError("No valid authentication token")
    return decode_access_token(token, settings)


def get_guard(
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AccessGuard:
    return AccessGuard(db, principal)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: Request, user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a student or parent account"""
    # Check if user exists
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise ConflictError("User with this email already exists")

    user = User(
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        first_name=user_data.first_name.strip(),
        last_name=user_data.last_name.strip(),
        role=user_data.role,
    )
    try:
        db.add(user)
        db.flush()

        # Students get their profile row right away
        if user.role == UserRole.STUDENT:
            db.add(Student(
                user_id=user.id,
                name=f"{user.first_name} {user.last_name}".strip(),
                email=user.email,
                target_countries=[],
                intended_majors=[],
            ))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent registration for {user_data.email}")
        raise ConflictError("User with this email already exists")
    db.refresh(user)
    logger.info(f"Registered {user.role.value} user {user.id}")

    return respond(
        request,
        {"user": serialize_user(user), "message": "User registered successfully"},
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login")
async def login(
    request: Request,
    credentials: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Log in and set the session cookie"""
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    token = create_access_token(user, settings)
    response = respond(request, {
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role.value,
            "first_name": user.first_name,
            "last_name": user.last_name,
        },
        "token": token,
    })
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return response


@router.post("/logout")
async def logout(request: Request, settings: Settings = Depends(get_app_settings)):
    """Clear the session cookie"""
    response = respond(request, {"message": "Logged out successfully"})
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response


@router.get("/me")
async def get_current_user_info(request: Request, principal: Principal = Depends(get_current_user)):
    """Get current user information"""
    return respond(request, {
        "id": principal.id,
        "email": principal.email,
        "role": principal.role.value,
        "first_name": principal.first_name,
        "last_name": principal.last_name,
    })

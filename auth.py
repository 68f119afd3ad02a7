import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

import crud
from config import get_settings
from database import get_db
from schemas import (
    UserCreate,
    UserLogin,
    UserOut,
    RegisterResponse,
    LoginResponse,
)

logger = logging.getLogger("uvicorn.error")

auth_router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, handed to every protected service call."""

    user_id: str
    username: str


class TokenError(Exception):
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    MALFORMED = "malformed"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.token_expire_days))
    to_encode = {"userId": user_id, "iat": now, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a valid token, or raise TokenError."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "userId"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError(TokenError.EXPIRED)
    except jwt.InvalidSignatureError:
        raise TokenError(TokenError.INVALID_SIGNATURE)
    except jwt.InvalidTokenError:
        raise TokenError(TokenError.MALFORMED)

    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id:
        raise TokenError(TokenError.MALFORMED)
    return user_id


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> Identity:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception

    try:
        user_id = decode_access_token(token)
    except TokenError as exc:
        logger.info("Rejected bearer token: %s", exc.reason)
        raise credentials_exception

    user = crud.get_user_by_id(db, user_id)
    if user is None:
        logger.info("Rejected bearer token: user %s no longer exists", user_id)
        raise credentials_exception
    return Identity(user_id=user.id, username=user.username)


@auth_router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(user: UserCreate, db: Session = Depends(get_db)):
    try:
        new_user = crud.create_user(db, user.username, user.password)
    except crud.DuplicateUsernameError:
        raise HTTPException(status_code=400, detail="User already exists")
    return new_user


@auth_router.post("/login", response_model=LoginResponse)
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = crud.get_user_by_username(db, user.username)
    if not db_user or not crud.verify_password(user.password, db_user.password_hash):
        logger.warning("Failed login for username %s", user.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return LoginResponse(
        id=db_user.id,
        username=db_user.username,
        token=create_access_token(db_user.id),
    )


@auth_router.get("/me", response_model=UserOut)
def me(current_user: Identity = Depends(get_current_user)):
    return UserOut(id=current_user.user_id, username=current_user.username)

# api/auth.py
# Handles user authentication, registration, and token generation.

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from sqlalchemy.orm import Session

# Import local modules
from recipe_hub import crud, models, policy, schemas
from recipe_hub.core.config import settings
from recipe_hub.core.rate_limit import limiter
from recipe_hub.db.session import get_db
from recipe_hub.errors import AuthenticationError
from recipe_hub.validation import FieldError, ensure_valid, is_valid_password

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# OAuth2 scheme definition. auto_error is off so missing tokens produce our own 401 envelope
# and public endpoints can treat the caller as anonymous.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token", auto_error=False)

# Create an API router
router = APIRouter()

# Get a logger instance
logger = logging.getLogger(__name__)


# --- Utility Functions for JWT ---

def create_access_token(data: dict, expires_delta: timedelta | None = None):
    """
    Creates a new JWT access token.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": ACCESS_TOKEN_TYPE})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire, "type": REFRESH_TOKEN_TYPE})
    return jwt.encode(to_encode, settings.REFRESH_SECRET_KEY, algorithm=settings.ALGORITHM)


def issue_tokens(user: models.User) -> dict:
    claims = {"sub": str(user.id), "email": user.email, "role": user.role.value}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token({"sub": str(user.id)}),
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "token_type": "bearer",
    }


def decode_token(token: str, token_type: str) -> schemas.TokenData:
    """Decode and check a token of the given type; raises AuthenticationError otherwise."""
    secret = settings.SECRET_KEY if token_type == ACCESS_TOKEN_TYPE else settings.REFRESH_SECRET_KEY
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except JWTError:
        logger.error("Invalid Auth Token")
        raise AuthenticationError("Could not validate credentials")
    token_data = schemas.TokenData(sub=payload.get("sub"), type=payload.get("type"))
    if token_data.sub is None or token_data.type != token_type:
        logger.error(f"Token rejected: expected type {token_type}")
        raise AuthenticationError("Could not validate credentials")
    return token_data


def _load_active_user(db: Session, token_data: schemas.TokenData) -> models.User:
    try:
        user_id = UUID(token_data.sub)
    except ValueError:
        raise AuthenticationError("Could not validate credentials")
    user = crud.get_user(db, user_id=user_id)
    if user is None:
        logger.error("Could not find user")
        raise AuthenticationError("Could not validate credentials")
    if not user.is_active:
        logger.warning(f"User {user.email} is inactive")
        raise AuthenticationError("Account is deactivated")
    return user


# --- Dependencies for Getting Current User ---

async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    """
    Decodes the JWT access token and reloads the user from the database,
    so role and active-flag changes apply to tokens already issued.
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    user = _load_active_user(db, decode_token(token, ACCESS_TOKEN_TYPE))
    request.state.user = user
    logger.debug(f"Found user: {user.email}")
    return user


async def get_current_active_user(current_user: models.User = Depends(get_current_user)):
    """
    Checks if the current user is active.
    """
    if not current_user.is_active:
        logger.warning(f"User {current_user.email} is inactive")
        raise AuthenticationError("Account is deactivated")
    return current_user


async def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[models.User]:
    """The current user if a valid token was sent, otherwise None (anonymous)."""
    if not token:
        return None
    try:
        user = _load_active_user(db, decode_token(token, ACCESS_TOKEN_TYPE))
    except AuthenticationError:
        return None
    request.state.user = user
    return user


async def get_current_admin(current_user: models.User = Depends(get_current_active_user)):
    policy.enforce(current_user, policy.Action.VIEW_ADMIN)
    return current_user


# --- Authentication Endpoints ---

@router.post("/register", response_model=schemas.ApiResponse[schemas.AuthResult], status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def register(request: Request, user_in: schemas.RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new account. Returns the user and a fresh token pair.
    """
    user = crud.register_user(db, user_in)
    logger.info(f"Registered new user {user.email}")
    return {
        "message": "User registered successfully",
        "data": {"user": user, "tokens": issue_tokens(user)},
    }


@router.post("/login", response_model=schemas.ApiResponse[schemas.AuthResult])
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = crud.authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.warning("Incorrect password")
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        logger.warning(f"Login attempt for deactivated account {user.email}")
        raise AuthenticationError("Account is deactivated")
    user = crud.record_login(db, user)
    return {"message": "Login successful", "data": {"user": user, "tokens": issue_tokens(user)}}


@router.post("/token", response_model=schemas.Token)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    OAuth2 password-flow login used by the interactive docs.
    """
    user = crud.authenticate_user(db, form_data.username, form_data.password)
    if not user or not user.is_active:
        logger.warning("Incorrect password or inactive account")
        raise AuthenticationError("Incorrect email or password")
    crud.record_login(db, user)
    return {"access_token": issue_tokens(user)["access_token"], "token_type": "bearer"}


@router.post("/refresh", response_model=schemas.ApiResponse[schemas.TokenPair])
@limiter.limit(settings.AUTH_RATE_LIMIT)
def refresh(request: Request, body: schemas.RefreshRequest, db: Session = Depends(get_db)):
    user = _load_active_user(db, decode_token(body.refresh_token, REFRESH_TOKEN_TYPE))
    return {"message": "Token refreshed", "data": issue_tokens(user)}


@router.post("/change-password", response_model=schemas.ApiResponse[None])
def change_password(
    body: schemas.ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    if not crud.verify_password(body.current_password, current_user.hashed_password):
        logger.warning(f"Wrong current password for {current_user.email}")
        raise AuthenticationError("Current password is incorrect")
    result = is_valid_password(body.new_password)
    ensure_valid([] if result else [FieldError("newPassword", result.message)])
    crud.change_password(db, current_user, body.new_password)
    return {"message": "Password changed successfully"}


@router.get("/me", response_model=schemas.ApiResponse[schemas.User])
def read_me(current_user: models.User = Depends(get_current_active_user)):
    return {"data": current_user}

"""
Authentication Router

Issues the bearer tokens the catalog endpoints accept.

Endpoints:
- POST /auth/register - Create an account and get a token
- POST /auth/login - Exchange username/password for a token

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords are never logged or stored
- Tokens are short-lived JWTs carrying only the user id
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from bookcatalog.config import get_settings
from bookcatalog.dependencies import DbSession
from bookcatalog.models import User
from bookcatalog.schemas import TokenResponse, UserCreate
from bookcatalog.services.rate_limiter import limiter
from bookcatalog.services.security import (
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict (email/username already exists)"},
    },
)


def _token_for(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token({"sub": str(user.id)}),
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        username=user.username,
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new account and receive an access token.

    **Password Requirements:**
    - 8 to 72 characters
    - At least 1 uppercase letter, 1 lowercase letter and 1 number

    **Username Requirements:**
    - 3-50 characters, starting with a letter
    - Only letters, numbers, and underscores
    """,
)
@limiter.limit(settings.rate_limit_auth)
def register(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
) -> TokenResponse:
    """
    Register a new user.

    1. Validates username, email and password (handled by Pydantic)
    2. Rejects a taken username or email with 409
    3. Stores the bcrypt hash of the password
    4. Returns an access token for the new account
    """
    stmt = select(User).where(
        or_(User.username == user_data.username, User.email == user_data.email)
    )
    if db.execute(stmt).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists",
        )

    user = User(
        username=user_data.username,
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        favorites=[],
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists",
        ) from None
    db.refresh(user)

    logger.info(f"New user registered: {user.username}")

    return _token_for(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with username and password",
    description="""
    Authenticate with form fields `username` and `password` (OAuth2
    password flow) to receive an access token.

    Include it in later requests:
    ```
    Authorization: Bearer <access_token>
    ```
    """,
)
@limiter.limit(settings.rate_limit_auth)
def login(
    request: Request,
    db: DbSession,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> TokenResponse:
    """Authenticate user and return a JWT access token."""
    username = form_data.username.lower()

    stmt = select(User).where(User.username == username)
    user = db.execute(stmt).scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Login failed for {username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User logged in: {user.username}")

    return _token_for(user)

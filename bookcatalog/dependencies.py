"""
FastAPI Dependencies Module

Reusable components injected into route handlers with Depends():
- DbSession: per-request database session
- OptionalCaller: identity resolved from an optional bearer token
- BookQueryParams: list filters and pagination

Identity resolution never fails a request. A missing, malformed, expired
or orphaned token resolves to None (anonymous); operations that need an
identity then raise their own Unauthorized/Forbidden errors.
"""

from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from bookcatalog.config import get_settings
from bookcatalog.database import get_db
from bookcatalog.models import User
from bookcatalog.services.catalog import BookQuery
from bookcatalog.services.security import CallerIdentity, verify_token_type

settings = get_settings()

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Book List Parameters
# =============================================================================
def get_book_query(
    page: str = Query(
        default="1",
        description="Page number (1-indexed)",
        examples=["1", "2"],
    ),
    limit: str = Query(
        default="10",
        description="Number of items per page",
        examples=["10", "25"],
    ),
    search: str | None = Query(
        default=None,
        max_length=100,
        description="Case-insensitive search over title, author and genre",
        examples=["orwell", "fantasy"],
    ),
    title: str | None = Query(
        default=None,
        max_length=100,
        description="Filter by title (partial match, case-insensitive)",
    ),
    author: str | None = Query(
        default=None,
        max_length=100,
        description="Filter by author (partial match, case-insensitive)",
    ),
    genre: str | None = Query(
        default=None,
        max_length=100,
        description="Filter by genre (partial match, case-insensitive)",
    ),
    status: str | None = Query(
        default=None,
        description="Special filter; only FAVORITES is recognized",
        examples=["FAVORITES"],
    ),
) -> BookQuery:
    """
    Collect list parameters.

    page and limit are passed through as strings; the catalog service
    decides whether they are valid so the error is a 400 like every other
    input check.

    Usage:
        GET /api/v1/books?page=2&limit=20&search=orwell
        GET /api/v1/books?status=FAVORITES
    """
    return BookQuery(
        page=page,
        limit=limit,
        search=search,
        title=title,
        author=author,
        genre=genre,
        status=status,
    )


BookQueryParams = Annotated[BookQuery, Depends(get_book_query)]


# =============================================================================
# Bearer Token Identity
# =============================================================================
# auto_error=False: a missing header yields None instead of a 401
oauth2_scheme_optional = OAuth2PasswordBearer(
    tokenUrl=f"/api/{settings.api_version}/auth/login",
    auto_error=False,
)


def get_optional_caller(
    token: str | None = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> CallerIdentity | None:
    """
    Resolve the caller from an optional JWT bearer token.

    Returns:
        CallerIdentity if the token is valid and its user exists, None otherwise
    """
    if not token:
        return None

    payload = verify_token_type(token, "access")
    if payload is None:
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None

    user = db.get(User, user_id)
    if user is None:
        return None

    return CallerIdentity(user_id=user.id, username=user.username)


OptionalCaller = Annotated[CallerIdentity | None, Depends(get_optional_caller)]

"""
Pydantic Schemas Package

Request/response models, kept separate from the SQLAlchemy models so the
API shape can evolve independently of the tables.

Schema Naming Convention:
- XxxCreate: Fields accepted when creating a record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
"""

from bookcatalog.schemas.review import (
    BookRatingStats,
    ProjectedReviewResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from bookcatalog.schemas.book import (
    BookBase,
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
)
from bookcatalog.schemas.user import (
    TokenResponse,
    UserCreate,
)

__all__ = [
    # Book schemas
    "BookBase",
    "BookCreate",
    "BookResponse",
    "BookDetailResponse",
    "BookListResponse",
    # Review schemas
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ProjectedReviewResponse",
    "BookRatingStats",
    # User / auth schemas
    "UserCreate",
    "TokenResponse",
]

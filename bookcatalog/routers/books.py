"""
Books Router

Catalog, favorites and review endpoints.

Endpoints:
- GET /books - List books (search, filters, favorites, pagination)
- POST /books/create - Batch-create books (authenticated)
- GET /books/{book_id} - Book detail with reviews
- POST /books/{book_id}/toggle-favorite - Flip favorite state (authenticated)
- POST /books/{book_id}/add-review - Add a review (authenticated)
- PUT /books/{book_id}/reviews/{review_id} - Update own review
- DELETE /books/{book_id}/reviews/{review_id} - Delete own review
- GET /books/{book_id}/reviews - Reviews of a book
- GET /books/{book_id}/rating - Rating statistics

Handlers stay thin: they resolve dependencies and call the catalog service.
Domain errors raised by the service are mapped to HTTP statuses in main.py.
Path ids are taken as strings so a malformed id is reported by the service
as a 400, the same as every other invalid input.
"""

from fastapi import APIRouter, Request, status

from bookcatalog.config import get_settings
from bookcatalog.dependencies import BookQueryParams, DbSession, OptionalCaller
from bookcatalog.schemas import (
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    ProjectedReviewResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from bookcatalog.services import catalog
from bookcatalog.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        400: {"description": "Invalid input"},
        404: {"description": "Book, review or user not found"},
    },
)


# =============================================================================
# Catalog Endpoints
# =============================================================================
@router.get(
    "",
    response_model=BookListResponse,
    summary="List books",
    description="Paginated book list with search, per-field filters and the FAVORITES status filter.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    query: BookQueryParams,
    caller: OptionalCaller,
) -> BookListResponse:
    """
    List books, each flagged with is_favorite for the caller.

    Examples:
        GET /api/v1/books?search=orwell
        GET /api/v1/books?genre=fantasy&page=2&limit=5
        GET /api/v1/books?status=FAVORITES   (requires a bearer token)
    """
    return catalog.list_books(db, query, caller)


@router.post(
    "/create",
    response_model=list[BookResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create books",
    description="Batch-create books from a non-empty list. Requires authentication.",
    responses={403: {"description": "No authenticated caller"}},
)
@limiter.limit(settings.rate_limit_write)
def create_books(
    request: Request,
    books_data: list[BookCreate],
    db: DbSession,
    caller: OptionalCaller,
) -> list[BookResponse]:
    """Insert all books of the payload and return them."""
    return catalog.create_books(db, books_data, caller)


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get a book by ID",
    description="Book detail with reviews; the caller's own reviews are listed first.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: str,
    db: DbSession,
    caller: OptionalCaller,
) -> BookDetailResponse:
    """Get a single book with projected reviews and favorite flag."""
    return catalog.get_book(db, book_id, caller)


# =============================================================================
# Favorites
# =============================================================================
@router.post(
    "/{book_id}/toggle-favorite",
    response_model=BookResponse,
    summary="Toggle favorite",
    description="Add the book to your favorites, or remove it if it is already there.",
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(settings.rate_limit_write)
def toggle_favorite(
    request: Request,
    book_id: str,
    db: DbSession,
    caller: OptionalCaller,
) -> BookResponse:
    """Flip the favorite state and return the book with the new flag."""
    return catalog.toggle_favorite_on_book(db, book_id, caller)


# =============================================================================
# Reviews
# =============================================================================
@router.get(
    "/{book_id}/reviews",
    response_model=list[ProjectedReviewResponse],
    summary="List reviews for a book",
    description="Reviews of a book in the order they were written.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    book_id: str,
    db: DbSession,
    caller: OptionalCaller,
) -> list[ProjectedReviewResponse]:
    return catalog.list_book_reviews(db, book_id, caller)


@router.get(
    "/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
    description="Average rating, review count and star distribution.",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating_stats(
    request: Request,
    book_id: str,
    db: DbSession,
) -> BookRatingStats:
    return catalog.get_rating_stats(db, book_id)


@router.post(
    "/{book_id}/add-review",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Add a 1-5 star review with an optional comment. Requires authentication.",
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(settings.rate_limit_write)
def add_review(
    request: Request,
    book_id: str,
    review_data: ReviewCreate,
    db: DbSession,
    caller: OptionalCaller,
) -> ReviewResponse:
    """Append a review and re-aggregate the book rating."""
    return catalog.add_review(db, book_id, caller, review_data)


@router.put(
    "/{book_id}/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    description="Update rating and/or comment of your own review.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Not the review author"},
        409: {"description": "Book changed concurrently"},
    },
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    book_id: str,
    review_id: str,
    review_data: ReviewUpdate,
    db: DbSession,
    caller: OptionalCaller,
) -> ReviewResponse:
    """Only fields present in the body are changed."""
    return catalog.update_review(db, book_id, review_id, caller, review_data)


@router.delete(
    "/{book_id}/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    description="Delete your own review. Only the author can delete.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Not the review author"},
        409: {"description": "Book changed concurrently"},
    },
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    book_id: str,
    review_id: str,
    db: DbSession,
    caller: OptionalCaller,
) -> None:
    """Returns 204 No Content on success."""
    catalog.delete_review(db, book_id, review_id, caller)

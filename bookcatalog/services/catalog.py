"""
Book Catalog Service

Composes the rating aggregator, review ledger and favorites set into the
operations the HTTP layer exposes.

Every function here:
1. Validates its inputs (ids, pagination, identity) before touching the store
2. Loads the documents it needs through the given session
3. Delegates the mutation to the ledger or favorites set
4. Commits, turning a stale write into a ConflictError
5. Returns Pydantic response models projected for the caller

Only exceptions from bookcatalog.exceptions are raised on purpose; store
failures propagate as SQLAlchemyError and become a generic 500.

Read-modify-write
=================
Review mutations load a book with its reviews, change the list in memory,
recompute the rating and save. Favorite toggles do the same on the user
row. Neither takes a lock: two requests racing on the same document are
separated by the version counter on Book and User, so the loser gets a 409
instead of silently overwriting the winner.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from bookcatalog.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from bookcatalog.models import Book, Review, User
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
from bookcatalog.services import reviews as ledger
from bookcatalog.services.favorites import favorite_ids, toggle_favorite
from bookcatalog.services.ratings import rating_distribution
from bookcatalog.services.security import CallerIdentity

logger = logging.getLogger(__name__)

# The only special value accepted for the `status` list filter
FAVORITES_STATUS = "FAVORITES"

DIGITS = re.compile(r"[0-9]+")


@dataclass
class BookQuery:
    """
    Filters and pagination for list_books.

    page and limit are kept as received (possibly strings) and validated by
    list_books itself.
    """

    page: Any = 1
    limit: Any = 10
    search: str | None = None
    title: str | None = None
    author: str | None = None
    genre: str | None = None
    status: str | None = None


# =============================================================================
# Input Helpers
# =============================================================================
def parse_positive_int(value: Any, label: str) -> int:
    """
    Convert a raw value to a positive integer.

    Strings must be plain ASCII digits; signs, underscores and decimal
    points are rejected.

    Raises:
        ValidationError: If the value is not an integer >= 1
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}")
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not DIGITS.fullmatch(text):
            raise ValidationError(f"Invalid {label}")
        number = int(text)
    if number < 1:
        raise ValidationError(f"Invalid {label}")
    return number


def parse_id(value: Any, label: str = "book ID") -> int:
    """Validate a store identifier."""
    return parse_positive_int(value, label)


def _require_caller(caller: CallerIdentity | None) -> CallerIdentity:
    if caller is None:
        raise UnauthorizedError("Unauthorized")
    return caller


def _caller_user(db: Session, caller: CallerIdentity | None) -> User | None:
    if caller is None:
        return None
    return db.get(User, caller.user_id)


def commit_or_conflict(db: Session) -> None:
    """
    Commit the session, reporting a lost version check as ConflictError.
    """
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Concurrent modification rejected: {e}")
        raise ConflictError(
            "The resource was modified by another request. Reload and retry."
        ) from e


def get_book_or_404(db: Session, book_id: int) -> Book:
    """
    Get a book with its reviews loaded, or raise NotFoundError.
    """
    stmt = (
        select(Book)
        .options(selectinload(Book.reviews))
        .where(Book.id == book_id)
    )
    book = db.execute(stmt).scalar_one_or_none()

    if book is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    return book


# =============================================================================
# Projection
# =============================================================================
def project_book(book: Book, favorites: set[int]) -> BookResponse:
    """Book fields plus the caller's favorite flag."""
    response = BookResponse.model_validate(book)
    return response.model_copy(update={"is_favorite": book.id in favorites})


def project_review(
    review: Review,
    caller: CallerIdentity | None,
) -> ProjectedReviewResponse:
    """Review fields plus whether the caller wrote it."""
    authored = caller is not None and ledger.can_modify(review, caller.user_id)
    response = ProjectedReviewResponse.model_validate(review)
    return response.model_copy(update={"is_authorized_user": authored})


def project_reviews(
    reviews: list[Review],
    caller: CallerIdentity | None,
) -> list[ProjectedReviewResponse]:
    """
    Reviews annotated with is_authorized_user, caller's reviews first.

    The sort is stable: within the caller's reviews and within everyone
    else's, ledger order is preserved.
    """
    projected = [project_review(review, caller) for review in reviews]
    projected.sort(key=lambda review: not review.is_authorized_user)
    return projected


def apply_book_filters(stmt, query: BookQuery):
    """
    Apply text filters to a book query.

    - search: case-insensitive substring of title, author OR genre
    - title / author / genre: case-insensitive substring of that field

    All given filters are combined with AND.
    """
    if query.search:
        stmt = stmt.where(
            or_(
                Book.title.icontains(query.search, autoescape=True),
                Book.author.icontains(query.search, autoescape=True),
                Book.genre.icontains(query.search, autoescape=True),
            )
        )

    if query.title:
        stmt = stmt.where(Book.title.icontains(query.title, autoescape=True))

    if query.author:
        stmt = stmt.where(Book.author.icontains(query.author, autoescape=True))

    if query.genre:
        stmt = stmt.where(Book.genre.icontains(query.genre, autoescape=True))

    return stmt


# =============================================================================
# Catalog Reads
# =============================================================================
def list_books(
    db: Session,
    query: BookQuery,
    caller: CallerIdentity | None = None,
) -> BookListResponse:
    """
    List books with filters and pagination, annotated with is_favorite.

    Raises:
        ValidationError: Bad page/limit or an unknown status value
        UnauthorizedError: status=FAVORITES without an identity
        NotFoundError: status=FAVORITES and the caller's user record is gone
    """
    page = parse_positive_int(query.page, "pagination parameters")
    limit = parse_positive_int(query.limit, "pagination parameters")

    if query.status and query.status != FAVORITES_STATUS:
        raise ValidationError(f"Unknown status filter: {query.status}")

    user = _caller_user(db, caller)
    stmt = apply_book_filters(select(Book), query)

    if query.status == FAVORITES_STATUS:
        _require_caller(caller)
        if user is None:
            raise NotFoundError("User not found")
        # Dangling ids (deleted books) simply match nothing here
        stmt = stmt.where(Book.id.in_(sorted(favorite_ids(user))))

    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0
    pages = math.ceil(total / limit) if total > 0 else 0

    page_stmt = (
        stmt
        .order_by(Book.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    books = db.execute(page_stmt).scalars().all()

    favorites = favorite_ids(user)
    return BookListResponse(
        items=[project_book(book, favorites) for book in books],
        total=total,
        page=page,
        limit=limit,
        pages=pages,
    )


def get_book(
    db: Session,
    book_id: Any,
    caller: CallerIdentity | None = None,
) -> BookDetailResponse:
    """
    Single book with projected reviews and favorite flag.

    Raises:
        ValidationError: Malformed book id
        NotFoundError: No such book
    """
    book_id = parse_id(book_id)
    book = get_book_or_404(db, book_id)
    favorites = favorite_ids(_caller_user(db, caller))

    response = BookDetailResponse.model_validate(book)
    return response.model_copy(
        update={
            "is_favorite": book.id in favorites,
            "reviews": project_reviews(book.reviews, caller),
        }
    )


def list_book_reviews(
    db: Session,
    book_id: Any,
    caller: CallerIdentity | None = None,
) -> list[ProjectedReviewResponse]:
    """Reviews of one book in ledger order, annotated for the caller."""
    book = get_book_or_404(db, parse_id(book_id))
    return [project_review(review, caller) for review in book.reviews]


def get_rating_stats(db: Session, book_id: Any) -> BookRatingStats:
    """Average, count and star distribution of a book's reviews."""
    book = get_book_or_404(db, parse_id(book_id))
    return BookRatingStats(
        book_id=book.id,
        average_rating=book.average_rating,
        total_reviews=book.review_count,
        rating_distribution=rating_distribution(book.reviews),
    )


# =============================================================================
# Catalog Writes
# =============================================================================
def create_books(
    db: Session,
    books_data: list[BookCreate],
    caller: CallerIdentity | None,
) -> list[BookResponse]:
    """
    Batch-insert books.

    Any authenticated caller may create books. New books have no reviews,
    so their rating starts at 0 whatever the payload says.

    Raises:
        ForbiddenError: No identity
        ValidationError: Payload is not a non-empty list
    """
    if caller is None:
        raise ForbiddenError("Forbidden")

    if not isinstance(books_data, list) or not books_data:
        raise ValidationError("Invalid books data")

    books = [
        Book(
            title=data.title,
            author=data.author,
            description=data.description,
            genre=data.genre,
            cover_image=data.cover_image,
            average_rating=0.0,
            review_count=0,
        )
        for data in books_data
    ]

    db.add_all(books)
    commit_or_conflict(db)

    logger.info(f"User {caller.user_id} created {len(books)} book(s)")

    return [BookResponse.model_validate(book) for book in books]


def toggle_favorite_on_book(
    db: Session,
    book_id: Any,
    caller: CallerIdentity | None,
) -> BookResponse:
    """
    Add the book to the caller's favorites, or remove it if already there.

    Raises:
        UnauthorizedError: No identity
        ValidationError: Malformed book id
        NotFoundError: User or book missing
        ConflictError: The user was modified concurrently
    """
    caller = _require_caller(caller)
    book_id = parse_id(book_id)

    user = db.get(User, caller.user_id)
    if user is None:
        raise NotFoundError("User not found")

    if db.get(Book, book_id) is None:
        raise NotFoundError(f"Book with id {book_id} not found")

    now_favorite = toggle_favorite(user, book_id)
    commit_or_conflict(db)

    logger.info(
        f"User {caller.user_id} {'added' if now_favorite else 'removed'} "
        f"favorite book {book_id}"
    )

    book = get_book_or_404(db, book_id)
    return BookResponse.model_validate(book).model_copy(
        update={"is_favorite": now_favorite}
    )


def add_review(
    db: Session,
    book_id: Any,
    caller: CallerIdentity | None,
    payload: ReviewCreate,
) -> ReviewResponse:
    """
    Append a review by the caller and re-aggregate the book rating.

    Raises:
        UnauthorizedError: No identity
        ValidationError: Malformed book id or invalid rating
        NotFoundError: No such book
        ConflictError: The book was modified concurrently
    """
    caller = _require_caller(caller)
    book_id = parse_id(book_id)
    ledger.validate_rating(payload.rating)

    book = get_book_or_404(db, book_id)
    review = ledger.add_review(
        book,
        user_id=caller.user_id,
        username=caller.username,
        rating=payload.rating,
        comment=payload.comment,
    )
    commit_or_conflict(db)

    logger.info(f"User {caller.user_id} reviewed book {book_id} (review {review.id})")

    return ReviewResponse.model_validate(review)


def update_review(
    db: Session,
    book_id: Any,
    review_id: Any,
    caller: CallerIdentity | None,
    payload: ReviewUpdate,
) -> ReviewResponse:
    """
    Partially update one of the caller's reviews.

    Raises:
        UnauthorizedError: No identity
        ValidationError: Malformed ids or invalid rating
        NotFoundError: No such book or review
        ForbiddenError: Caller is not the author
        ConflictError: The book was modified concurrently
    """
    caller = _require_caller(caller)
    book_id = parse_id(book_id)
    review_id = parse_id(review_id, "review ID")
    if payload.rating is not None:
        ledger.validate_rating(payload.rating)

    book = get_book_or_404(db, book_id)
    review = ledger.update_review(
        book,
        review_id,
        caller.user_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    commit_or_conflict(db)

    logger.info(f"User {caller.user_id} updated review {review_id} on book {book_id}")

    return ReviewResponse.model_validate(review)


def delete_review(
    db: Session,
    book_id: Any,
    review_id: Any,
    caller: CallerIdentity | None,
) -> ReviewResponse:
    """
    Delete one of the caller's reviews and re-aggregate the book rating.

    Returns:
        The removed review, as confirmation

    Raises:
        UnauthorizedError: No identity
        ValidationError: Malformed ids
        NotFoundError: No such book or review
        ForbiddenError: Caller is not the author
        ConflictError: The book was modified concurrently
    """
    caller = _require_caller(caller)
    book_id = parse_id(book_id)
    review_id = parse_id(review_id, "review ID")

    book = get_book_or_404(db, book_id)
    review = ledger.delete_review(book, review_id, caller.user_id)
    # Snapshot before commit; the row is gone afterwards
    removed = ReviewResponse.model_validate(review)
    commit_or_conflict(db)

    logger.info(f"User {caller.user_id} deleted review {review_id} on book {book_id}")

    return removed

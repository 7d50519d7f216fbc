"""
Review Ledger

Manages the ordered list of reviews owned by one book: append, edit by
owner, remove by owner. Every mutation re-aggregates the book's rating
before returning, so a caller that commits the book always commits a
consistent (reviews, average_rating, review_count) triple.

Business Rules:
- Ratings are integers from 1 to 5
- New reviews go to the end of the list; the list is never re-sorted
- Only the author can update or delete a review (see can_modify)

Nothing here touches the session; the catalog service loads and commits.
"""

from datetime import UTC, datetime
from typing import Any

from bookcatalog.exceptions import ForbiddenError, NotFoundError, ValidationError
from bookcatalog.models import Book, Review
from bookcatalog.services.ratings import recalculate_book_rating

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: Any) -> int:
    """
    Check a rating value.

    Raises:
        ValidationError: If the rating is missing, not an integer, or
            outside 1-5
    """
    if rating is None:
        raise ValidationError("Rating is required")
    # bool is an int subclass; True must not pass as a 1-star rating
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}"
        )
    return rating


def can_modify(review: Review, caller_id: Any) -> bool:
    """
    Whether the caller may edit or delete the review.

    Ownership is plain string equality between the stored author id and the
    caller's id. There is no role-based override.
    """
    return str(review.user_id) == str(caller_id)


def find_review(book: Book, review_id: int) -> Review:
    """
    Get a review of the book by id or raise NotFoundError.
    """
    for review in book.reviews:
        if review.id == review_id:
            return review
    raise NotFoundError(f"Review with id {review_id} not found")


def _reaggregate(book: Book) -> None:
    recalculate_book_rating(book)
    # Always dirty the book row so its version counter moves, even when the
    # average happens to stay the same.
    book.updated_at = datetime.now(UTC)


def add_review(
    book: Book,
    user_id: int,
    username: str,
    rating: Any,
    comment: str | None = None,
) -> Review:
    """
    Append a new review to the book.

    Args:
        book: Book being reviewed
        user_id: Author id
        username: Author display name, copied onto the review
        rating: 1-5 star rating
        comment: Optional review text

    Returns:
        The new review (its id is assigned when the book is flushed)

    Raises:
        ValidationError: If the rating is invalid
    """
    rating = validate_rating(rating)

    review = Review(
        user_id=user_id,
        username=username,
        rating=rating,
        comment=comment,
        created_at=datetime.now(UTC),
    )
    book.reviews.append(review)
    _reaggregate(book)

    return review


def update_review(
    book: Book,
    review_id: int,
    caller_id: Any,
    rating: Any = None,
    comment: str | None = None,
) -> Review:
    """
    Partially update a review. Fields passed as None are left unchanged.

    All checks run before anything is written, so a failed update leaves the
    review exactly as it was.

    Raises:
        NotFoundError: If the book has no review with that id
        ForbiddenError: If the caller is not the review author
        ValidationError: If a new rating is given and is invalid
    """
    review = find_review(book, review_id)

    if not can_modify(review, caller_id):
        raise ForbiddenError("Not authorized to update this review")

    if rating is not None:
        rating = validate_rating(rating)

    if rating is not None:
        review.rating = rating
    if comment is not None:
        review.comment = comment
    review.updated_at = datetime.now(UTC)

    _reaggregate(book)

    return review


def delete_review(book: Book, review_id: int, caller_id: Any) -> Review:
    """
    Remove a review from the book, keeping the order of the others.

    Returns:
        The removed review

    Raises:
        NotFoundError: If the book has no review with that id
        ForbiddenError: If the caller is not the review author
    """
    review = find_review(book, review_id)

    if not can_modify(review, caller_id):
        raise ForbiddenError("Not authorized to delete this review")

    book.reviews.remove(review)
    _reaggregate(book)

    return review

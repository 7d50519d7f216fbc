"""
Ratings Service

Derives a book's rating fields from its review list:
- average_rating: The mean of all review ratings (0 when there are none)
- review_count: Total number of reviews

These fields are denormalized onto the Book row so listings don't need an
AVG/COUNT per book. They are always recomputed from the full review list,
never adjusted incrementally, so the cache cannot drift from its source.
"""

from collections.abc import Iterable, Sequence

from bookcatalog.models import Book, Review


def aggregate_rating(reviews: Sequence[Review]) -> float:
    """
    Arithmetic mean of the review ratings.

    Args:
        reviews: Reviews of one book, in any order

    Returns:
        Mean rating as a float, or 0.0 for an empty sequence

    Example:
        >>> aggregate_rating([Review(rating=5), Review(rating=4), Review(rating=3)])
        4.0
    """
    if not reviews:
        return 0.0
    return sum(review.rating for review in reviews) / len(reviews)


def recalculate_book_rating(book: Book) -> None:
    """
    Recompute and store a book's rating aggregations.

    Called after every review insert, update or delete. Does not commit;
    the caller persists the book together with the review change.

    Args:
        book: Book whose `reviews` collection is already mutated
    """
    book.average_rating = aggregate_rating(book.reviews)
    book.review_count = len(book.reviews)


def rating_distribution(reviews: Iterable[Review]) -> dict[int, int]:
    """Count of reviews per star value, 1 through 5."""
    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    for review in reviews:
        distribution[review.rating] += 1
    return distribution

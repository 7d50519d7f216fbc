"""
Favorites Set

Per-user set of favorited book ids, stored as a JSON list on the user row.

The ids are weak references: toggling never checks that the book exists,
and a favorite whose book was later deleted simply never matches anything.
"""

from bookcatalog.models import User


def favorite_ids(user: User | None) -> set[int]:
    """Favorited book ids of the user; empty for anonymous callers."""
    if user is None:
        return set()
    return {int(book_id) for book_id in (user.favorites or [])}


def is_favorite(user: User | None, book_id: int) -> bool:
    """Membership test; always False when there is no user."""
    return int(book_id) in favorite_ids(user)


def toggle_favorite(user: User, book_id: int) -> bool:
    """
    Flip the membership of a book in the user's favorites.

    Removes the id if present, adds it otherwise. Calling it twice restores
    the original state.

    Args:
        user: User whose favorites change (not committed here)
        book_id: Book id, not validated against the books table

    Returns:
        True if the book is a favorite after the toggle
    """
    book_id = int(book_id)
    current = [int(favorite) for favorite in (user.favorites or [])]

    if book_id in current:
        updated = [favorite for favorite in current if favorite != book_id]
    else:
        updated = current + [book_id]

    # A new list object, so SQLAlchemy sees the JSON column as changed
    user.favorites = updated

    return book_id in updated

"""
Tests for the favorites set stored on the user.
"""

from bookcatalog.models import User
from bookcatalog.services.favorites import favorite_ids, is_favorite, toggle_favorite


def new_user(favorites=None) -> User:
    return User(username="reader", email="reader@example.com", hashed_password="x", favorites=favorites or [])


class TestToggleFavorite:
    """Tests for toggle_favorite()"""

    def test_adds_missing_book(self):
        user = new_user()

        assert toggle_favorite(user, 7) is True
        assert user.favorites == [7]

    def test_removes_present_book(self):
        user = new_user([3, 7, 9])

        assert toggle_favorite(user, 7) is False
        assert user.favorites == [3, 9]

    def test_twice_restores_original(self):
        user = new_user([3])

        toggle_favorite(user, 5)
        toggle_favorite(user, 5)

        assert user.favorites == [3]

    def test_assigns_new_list(self):
        """The JSON column is only flushed when a new list is assigned."""
        original = [1]
        user = new_user(original)

        toggle_favorite(user, 2)

        assert user.favorites is not original
        assert original == [1]

    def test_does_not_check_book_exists(self):
        user = new_user()

        assert toggle_favorite(user, 99999) is True
        assert 99999 in favorite_ids(user)

    def test_accepts_string_ids(self):
        user = new_user([4])

        assert toggle_favorite(user, "4") is False
        assert user.favorites == []


class TestMembership:
    """Tests for favorite_ids() and is_favorite()"""

    def test_anonymous_has_no_favorites(self):
        assert favorite_ids(None) == set()
        assert is_favorite(None, 1) is False

    def test_membership(self):
        user = new_user([1, 3])

        assert is_favorite(user, 1) is True
        assert is_favorite(user, 2) is False
        assert favorite_ids(user) == {1, 3}

    def test_missing_list_is_empty(self):
        user = new_user()
        user.favorites = None

        assert favorite_ids(user) == set()

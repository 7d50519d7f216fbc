"""
Tests for the catalog service (services/catalog.py).

These call the service functions directly with a session and a resolved
CallerIdentity, the way the routers do.
"""

import pytest
from sqlalchemy.orm import Session

from bookcatalog.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from bookcatalog.models import Book, User
from bookcatalog.schemas import BookCreate, ReviewCreate, ReviewUpdate
from bookcatalog.services import catalog
from bookcatalog.services.catalog import BookQuery
from bookcatalog.services.favorites import toggle_favorite
from bookcatalog.services.security import CallerIdentity
from tests.conftest import identity_of, make_book, make_user


def add(db: Session, book: Book, user: User, rating: int, comment: str | None = None):
    return catalog.add_review(
        db, book.id, identity_of(user), ReviewCreate(rating=rating, comment=comment)
    )


# =============================================================================
# Input Helpers
# =============================================================================
class TestParseId:
    """Tests for parse_id() and parse_positive_int()"""

    @pytest.mark.parametrize("value, expected", [("1", 1), (42, 42), (" 7 ", 7)])
    def test_valid(self, value, expected):
        assert catalog.parse_id(value) == expected

    @pytest.mark.parametrize(
        "value", ["abc", "", "0", "-3", "1.5", "+3", "1_0", "1e3", "\u0661", None, True]
    )
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            catalog.parse_id(value)


# =============================================================================
# List
# =============================================================================
class TestListBooks:
    """Tests for list_books()"""

    def test_anonymous_never_favorite(
        self, db_session: Session, catalog_books: list[Book]
    ):
        result = catalog.list_books(db_session, BookQuery())

        assert result.total == 5
        assert all(item.is_favorite is False for item in result.items)

    def test_is_favorite_flag(
        self, db_session: Session, catalog_books: list[Book], sample_user: User
    ):
        toggle_favorite(sample_user, catalog_books[1].id)
        db_session.commit()

        result = catalog.list_books(db_session, BookQuery(), identity_of(sample_user))

        flags = {item.id: item.is_favorite for item in result.items}
        assert flags[catalog_books[1].id] is True
        assert sum(flags.values()) == 1

    def test_favorites_requires_identity(
        self, db_session: Session, catalog_books: list[Book]
    ):
        with pytest.raises(UnauthorizedError):
            catalog.list_books(db_session, BookQuery(status="FAVORITES"))

    def test_favorites_user_missing(self, db_session: Session, catalog_books: list[Book]):
        ghost = CallerIdentity(user_id=99999, username="ghost")

        with pytest.raises(NotFoundError):
            catalog.list_books(db_session, BookQuery(status="FAVORITES"), ghost)

    def test_favorites_returns_exactly_favorited_books(
        self, db_session: Session, catalog_books: list[Book], sample_user: User
    ):
        b1, b3 = catalog_books[0], catalog_books[2]
        toggle_favorite(sample_user, b1.id)
        toggle_favorite(sample_user, b3.id)
        db_session.commit()

        result = catalog.list_books(
            db_session,
            BookQuery(page="1", limit="10", status="FAVORITES"),
            identity_of(sample_user),
        )

        assert {item.id for item in result.items} == {b1.id, b3.id}
        assert result.total == 2
        assert all(item.is_favorite for item in result.items)

    def test_favorites_combined_with_search(
        self, db_session: Session, catalog_books: list[Book], sample_user: User
    ):
        for book in catalog_books[:3]:
            toggle_favorite(sample_user, book.id)
        db_session.commit()

        result = catalog.list_books(
            db_session,
            BookQuery(search="orwell", status="FAVORITES"),
            identity_of(sample_user),
        )

        assert [item.title for item in result.items] == ["1984", "Animal Farm"]

    def test_dangling_favorite_is_ignored(
        self, db_session: Session, catalog_books: list[Book], sample_user: User
    ):
        toggle_favorite(sample_user, catalog_books[0].id)
        toggle_favorite(sample_user, 99999)
        db_session.commit()

        result = catalog.list_books(
            db_session, BookQuery(status="FAVORITES"), identity_of(sample_user)
        )

        assert [item.id for item in result.items] == [catalog_books[0].id]

    def test_unknown_status(self, db_session: Session, catalog_books: list[Book]):
        with pytest.raises(ValidationError):
            catalog.list_books(db_session, BookQuery(status="READ"))

    @pytest.mark.parametrize(
        "page, limit",
        [
            ("0", "10"), ("1", "0"), ("abc", "10"), ("1", "-5"), ("1", "x"),
            ("+3", "10"), ("1_0", "10"), ("1", "1_0"),
        ],
    )
    def test_invalid_pagination(self, db_session: Session, page, limit):
        with pytest.raises(ValidationError):
            catalog.list_books(db_session, BookQuery(page=page, limit=limit))

    def test_search_is_case_insensitive_over_three_fields(
        self, db_session: Session, catalog_books: list[Book]
    ):
        by_title = catalog.list_books(db_session, BookQuery(search="HOBBIT"))
        by_author = catalog.list_books(db_session, BookQuery(search="austen"))
        by_genre = catalog.list_books(db_session, BookQuery(search="science"))

        assert [b.title for b in by_title.items] == ["The Hobbit"]
        assert [b.title for b in by_author.items] == ["Pride and Prejudice"]
        assert [b.title for b in by_genre.items] == ["Foundation"]

    def test_field_filters_are_combined(
        self, db_session: Session, catalog_books: list[Book]
    ):
        result = catalog.list_books(
            db_session, BookQuery(author="orwell", genre="satire")
        )

        assert [b.title for b in result.items] == ["Animal Farm"]

    def test_search_wildcards_match_literally(self, db_session: Session, catalog_books: list[Book]):
        """% and _ in a search term are plain characters, not LIKE wildcards."""
        make_book(db_session, "100% Cotton", author="A. Weaver", genre="Craft")
        make_book(db_session, "snake_case Handbook", author="P. Coder", genre="Programming")

        percent = catalog.list_books(db_session, BookQuery(search="%"))
        underscore = catalog.list_books(db_session, BookQuery(search="_"))
        title_percent = catalog.list_books(db_session, BookQuery(title="0%"))

        assert [b.title for b in percent.items] == ["100% Cotton"]
        assert [b.title for b in underscore.items] == ["snake_case Handbook"]
        assert [b.title for b in title_percent.items] == ["100% Cotton"]

    def test_pagination(self, db_session: Session, multiple_books: list[Book]):
        result = catalog.list_books(db_session, BookQuery(page="2", limit="10"))

        assert result.total == 15
        assert result.pages == 2
        assert result.page == 2
        assert len(result.items) == 5
        assert result.items[0].title == "Test Book 11"


# =============================================================================
# Detail
# =============================================================================
class TestGetBook:
    """Tests for get_book()"""

    def test_invalid_id(self, db_session: Session):
        with pytest.raises(ValidationError):
            catalog.get_book(db_session, "not-an-id")

    def test_not_found(self, db_session: Session):
        with pytest.raises(NotFoundError):
            catalog.get_book(db_session, "99999")

    def test_callers_reviews_first_stable(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        second_user: User,
    ):
        # Authors in ledger order: U2, U1, U2
        first = add(db_session, sample_book, second_user, 2, "first")
        mine = add(db_session, sample_book, sample_user, 5, "mine")
        third = add(db_session, sample_book, second_user, 3, "third")

        detail = catalog.get_book(db_session, sample_book.id, identity_of(sample_user))

        assert [r.id for r in detail.reviews] == [mine.id, first.id, third.id]
        assert [r.is_authorized_user for r in detail.reviews] == [True, False, False]

    def test_anonymous_sees_ledger_order(
        self,
        db_session: Session,
        sample_book: Book,
        sample_user: User,
        second_user: User,
    ):
        first = add(db_session, sample_book, second_user, 2)
        second = add(db_session, sample_book, sample_user, 5)

        detail = catalog.get_book(db_session, sample_book.id)

        assert [r.id for r in detail.reviews] == [first.id, second.id]
        assert not any(r.is_authorized_user for r in detail.reviews)
        assert detail.is_favorite is False

    def test_is_favorite(self, db_session: Session, sample_book: Book, sample_user: User):
        toggle_favorite(sample_user, sample_book.id)
        db_session.commit()

        detail = catalog.get_book(db_session, str(sample_book.id), identity_of(sample_user))

        assert detail.is_favorite is True


# =============================================================================
# Create
# =============================================================================
class TestCreateBooks:
    """Tests for create_books()"""

    def payload(self, **overrides) -> BookCreate:
        data = {
            "title": "Dune",
            "author": "Frank Herbert",
            "description": "Spice and sandworms.",
            "genre": "Science Fiction",
            "cover_image": "https://covers.example.com/dune.jpg",
        }
        data.update(overrides)
        return BookCreate(**data)

    def test_requires_identity(self, db_session: Session):
        with pytest.raises(ForbiddenError):
            catalog.create_books(db_session, [self.payload()], None)

    def test_empty_payload(self, db_session: Session, sample_user: User):
        with pytest.raises(ValidationError):
            catalog.create_books(db_session, [], identity_of(sample_user))

    def test_creates_all(self, db_session: Session, sample_user: User):
        created = catalog.create_books(
            db_session,
            [self.payload(), self.payload(title="Children of Dune", average_rating=4.8)],
            identity_of(sample_user),
        )

        assert [book.title for book in created] == ["Dune", "Children of Dune"]
        assert all(book.id for book in created)
        # Ratings start from the (empty) review list, not the payload
        assert all(book.average_rating == 0 for book in created)
        assert all(book.review_count == 0 for book in created)


# =============================================================================
# Favorites
# =============================================================================
class TestToggleFavoriteOnBook:
    """Tests for toggle_favorite_on_book()"""

    def test_requires_identity(self, db_session: Session, sample_book: Book):
        with pytest.raises(UnauthorizedError):
            catalog.toggle_favorite_on_book(db_session, sample_book.id, None)

    def test_invalid_id(self, db_session: Session, sample_user: User):
        with pytest.raises(ValidationError):
            catalog.toggle_favorite_on_book(db_session, "abc", identity_of(sample_user))

    def test_book_missing(self, db_session: Session, sample_user: User):
        with pytest.raises(NotFoundError):
            catalog.toggle_favorite_on_book(db_session, "99999", identity_of(sample_user))

    def test_user_missing(self, db_session: Session, sample_book: Book):
        ghost = CallerIdentity(user_id=99999, username="ghost")

        with pytest.raises(NotFoundError):
            catalog.toggle_favorite_on_book(db_session, sample_book.id, ghost)

    def test_toggle_twice(self, db_session: Session, sample_book: Book, sample_user: User):
        caller = identity_of(sample_user)

        on = catalog.toggle_favorite_on_book(db_session, sample_book.id, caller)
        assert on.is_favorite is True
        assert sample_user.favorites == [sample_book.id]

        off = catalog.toggle_favorite_on_book(db_session, sample_book.id, caller)
        assert off.is_favorite is False
        assert sample_user.favorites == []


# =============================================================================
# Reviews
# =============================================================================
class TestReviewOperations:
    """Tests for add_review(), update_review() and delete_review()"""

    def test_add_requires_identity(self, db_session: Session, sample_book: Book):
        with pytest.raises(UnauthorizedError):
            catalog.add_review(db_session, sample_book.id, None, ReviewCreate(rating=5))

    def test_add_missing_rating(self, db_session: Session, sample_book: Book, sample_user: User):
        with pytest.raises(ValidationError):
            catalog.add_review(
                db_session, sample_book.id, identity_of(sample_user), ReviewCreate()
            )

    def test_add_to_missing_book(self, db_session: Session, sample_user: User):
        with pytest.raises(NotFoundError):
            catalog.add_review(
                db_session, "99999", identity_of(sample_user), ReviewCreate(rating=3)
            )

    def test_add_third_review_averages(
        self, db_session: Session, sample_book: Book, sample_user: User, second_user: User
    ):
        add(db_session, sample_book, sample_user, 5)
        add(db_session, sample_book, second_user, 4)
        review = add(db_session, sample_book, sample_user, 3)

        db_session.refresh(sample_book)
        assert review.rating == 3
        assert review.username == sample_user.username
        assert sample_book.average_rating == 4.0
        assert sample_book.review_count == 3

    def test_update_by_other_user_is_forbidden(
        self, db_session: Session, sample_book: Book, sample_user: User, second_user: User
    ):
        review = add(db_session, sample_book, sample_user, 4, "Good")

        with pytest.raises(ForbiddenError):
            catalog.update_review(
                db_session,
                sample_book.id,
                review.id,
                identity_of(second_user),
                ReviewUpdate(rating=1, comment="Bad"),
            )

        detail = catalog.get_book(db_session, sample_book.id)
        assert detail.reviews[0].rating == 4
        assert detail.reviews[0].comment == "Good"
        assert detail.average_rating == 4.0

    def test_update_recomputes_average(
        self, db_session: Session, sample_book: Book, sample_user: User, second_user: User
    ):
        review = add(db_session, sample_book, sample_user, 4)
        add(db_session, sample_book, second_user, 2)

        updated = catalog.update_review(
            db_session,
            sample_book.id,
            str(review.id),
            identity_of(sample_user),
            ReviewUpdate(rating=5),
        )

        assert updated.rating == 5
        assert catalog.get_book(db_session, sample_book.id).average_rating == 3.5

    def test_update_invalid_review_id(
        self, db_session: Session, sample_book: Book, sample_user: User
    ):
        with pytest.raises(ValidationError):
            catalog.update_review(
                db_session, sample_book.id, "x", identity_of(sample_user), ReviewUpdate(rating=3)
            )

    def test_delete_last_review_resets_average(
        self, db_session: Session, sample_book: Book, sample_user: User
    ):
        review = add(db_session, sample_book, sample_user, 4)

        removed = catalog.delete_review(
            db_session, sample_book.id, review.id, identity_of(sample_user)
        )

        assert removed.id == review.id
        detail = catalog.get_book(db_session, sample_book.id)
        assert detail.reviews == []
        assert detail.average_rating == 0
        assert detail.review_count == 0

    def test_delete_by_other_user_is_forbidden(
        self, db_session: Session, sample_book: Book, sample_user: User, second_user: User
    ):
        review = add(db_session, sample_book, sample_user, 4)

        with pytest.raises(ForbiddenError):
            catalog.delete_review(
                db_session, sample_book.id, review.id, identity_of(second_user)
            )

        assert catalog.get_book(db_session, sample_book.id).review_count == 1

    def test_rating_stats(
        self, db_session: Session, sample_book: Book, sample_user: User, second_user: User
    ):
        add(db_session, sample_book, sample_user, 5)
        add(db_session, sample_book, second_user, 5)
        add(db_session, sample_book, make_user(db_session, "third"), 2)

        stats = catalog.get_rating_stats(db_session, sample_book.id)

        assert stats.total_reviews == 3
        assert stats.average_rating == pytest.approx(4.0)
        assert stats.rating_distribution == {1: 0, 2: 1, 3: 0, 4: 0, 5: 2}

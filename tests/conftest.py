"""
pytest Fixtures for Book Catalog Tests

Shared fixtures used across all test files.

For database tests, we use:
- session scope for the engine (expensive to create)
- function scope for sessions (isolation between tests)

Every test runs inside a connection-level transaction that is rolled back
afterwards, so commits made by the code under test never leak between
tests.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and sets a test secret key
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookcatalog.database import Base, get_db
from bookcatalog.main import app
from bookcatalog.models import Book, Review, User
from bookcatalog.services import reviews as ledger
from bookcatalog.services.security import CallerIdentity, create_access_token, hash_password

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps the suite fast and self-contained. The JSON
# favorites column and version counters behave the same as on PostgreSQL.


@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the single connection alive for the entire session;
    without it the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    The session is wrapped in a transaction that's rolled back,
    ensuring test isolation without needing to recreate tables.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client that uses the test database session.

    get_db is overridden so handlers and the identity dependency share the
    test session.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# HELPERS
# =============================================================================
def get_auth_header(user: User) -> dict:
    """Create authorization header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def identity_of(user: User) -> CallerIdentity:
    """The resolved caller identity the services receive for a user."""
    return CallerIdentity(user_id=user.id, username=user.username)


def make_book(db: Session, title: str, author: str = "Some Author", genre: str = "Fiction") -> Book:
    book = Book(
        title=title,
        author=author,
        description=f"Description of {title}",
        genre=genre,
        cover_image=f"https://covers.example.com/{title.lower().replace(' ', '-')}.jpg",
        average_rating=0.0,
        review_count=0,
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


def make_user(db: Session, username: str, password: str = "SecurePass123") -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        hashed_password=hash_password(password),
        favorites=[],
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    return make_user(db_session, "testuser")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Create a second user for testing ownership scenarios."""
    return make_user(db_session, "seconduser", password="SecurePass456")


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    """Create a sample book with no reviews."""
    return make_book(db_session, "1984", author="George Orwell", genre="Dystopian")


@pytest.fixture
def catalog_books(db_session: Session) -> list[Book]:
    """
    A small catalog for search and filter tests.

    Titles, authors and genres are chosen so substring matches are
    unambiguous.
    """
    return [
        make_book(db_session, "1984", author="George Orwell", genre="Dystopian"),
        make_book(db_session, "Animal Farm", author="George Orwell", genre="Satire"),
        make_book(db_session, "Pride and Prejudice", author="Jane Austen", genre="Romance"),
        make_book(db_session, "Foundation", author="Isaac Asimov", genre="Science Fiction"),
        make_book(db_session, "The Hobbit", author="J.R.R. Tolkien", genre="Fantasy"),
    ]


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Create more books than the default page size."""
    return [make_book(db_session, f"Test Book {i + 1}") for i in range(15)]


@pytest.fixture
def sample_review(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> Review:
    """A 4-star review by sample_user, added through the ledger."""
    review = ledger.add_review(
        sample_book,
        sample_user.id,
        sample_user.username,
        4,
        "I really enjoyed reading this book.",
    )
    db_session.commit()
    db_session.refresh(review)
    return review

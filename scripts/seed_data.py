#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

This script:
1. Connects to the database using bookcatalog settings
2. Clears existing data (optional)
3. Creates a demo user and a second reviewer
4. Creates sample books
5. Adds reviews through the review ledger so ratings stay consistent
6. Marks a couple of books as favorites of the demo user
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookcatalog.database import SessionLocal, create_tables
from bookcatalog.models import Book, Review, User
from bookcatalog.services import reviews as ledger
from bookcatalog.services.favorites import toggle_favorite
from bookcatalog.services.security import hash_password

DEMO_PASSWORD = "DemoPass123"


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    db.execute(delete(Review))
    db.execute(delete(Book))
    db.execute(delete(User))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> list[User]:
    """Create the demo accounts."""
    print("Creating users...")
    users = [
        User(
            username="demo",
            email="demo@example.com",
            hashed_password=hash_password(DEMO_PASSWORD),
            favorites=[],
        ),
        User(
            username="reader",
            email="reader@example.com",
            hashed_password=hash_password(DEMO_PASSWORD),
            favorites=[],
        ),
    ]
    db.add_all(users)
    db.commit()
    for user in users:
        db.refresh(user)

    print(f"Created {len(users)} users (password: {DEMO_PASSWORD}).")
    return users


def create_books(db: Session) -> list[Book]:
    """Create sample books."""
    print("Creating books...")
    books_data = [
        {
            "title": "1984",
            "author": "George Orwell",
            "description": "A dystopian novel set in a totalitarian society under constant surveillance.",
            "genre": "Dystopian",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780451524935-L.jpg",
        },
        {
            "title": "Animal Farm",
            "author": "George Orwell",
            "description": "An allegorical novella reflecting events leading up to the Russian Revolution.",
            "genre": "Classic Literature",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780451526342-L.jpg",
        },
        {
            "title": "Pride and Prejudice",
            "author": "Jane Austen",
            "description": "A romantic novel following Elizabeth Bennet and Mr. Darcy.",
            "genre": "Romance",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780141439518-L.jpg",
        },
        {
            "title": "The Old Man and the Sea",
            "author": "Ernest Hemingway",
            "description": "An aging Cuban fisherman struggles with a giant marlin.",
            "genre": "Classic Literature",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780684801223-L.jpg",
        },
        {
            "title": "Murder on the Orient Express",
            "author": "Agatha Christie",
            "description": "Hercule Poirot investigates a murder aboard the famous train.",
            "genre": "Mystery",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780062693662-L.jpg",
        },
        {
            "title": "Foundation",
            "author": "Isaac Asimov",
            "description": "The first novel in the Foundation series about the fall of the Galactic Empire.",
            "genre": "Science Fiction",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780553293357-L.jpg",
        },
        {
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "description": "Bilbo Baggins embarks on a quest to reclaim the Lonely Mountain.",
            "genre": "Fantasy",
            "cover_image": "https://covers.openlibrary.org/b/isbn/9780547928227-L.jpg",
        },
    ]

    books = [Book(**data, average_rating=0.0, review_count=0) for data in books_data]
    db.add_all(books)
    db.commit()
    for book in books:
        db.refresh(book)

    print(f"Created {len(books)} books.")
    return books


def create_reviews(db: Session, users: list[User], books: list[Book]) -> int:
    """Review the first few books from both accounts."""
    print("Creating reviews...")
    demo, reader = users
    samples = [
        (books[0], demo, 5, "Chilling and still relevant."),
        (books[0], reader, 4, None),
        (books[2], reader, 5, "Witty from the first line."),
        (books[4], demo, 3, "Clever, if a little dated."),
        (books[6], reader, 5, "A perfect adventure."),
        (books[6], demo, 4, None),
    ]

    for book, user, rating, comment in samples:
        ledger.add_review(book, user.id, user.username, rating, comment)

    db.commit()
    print(f"Created {len(samples)} reviews.")
    return len(samples)


def mark_favorites(db: Session, user: User, books: list[Book]) -> None:
    """Favorite a couple of books for the demo account."""
    for book in books:
        toggle_favorite(user, book.id)
    db.commit()
    print(f"Marked {len(books)} favorites for {user.username}.")


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        users = create_users(db)
        books = create_books(db)
        review_count = create_reviews(db, users, books)
        mark_favorites(db, users[0], [books[0], books[2]])

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Users: {len(users)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Reviews: {review_count}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()

"""
SQLAlchemy Models Package

Model Relationships:
- Book -> Review: One-to-Many, reviews owned by their book
- User -> favorites: JSON list of book ids (no foreign key)

Import all models here so they are available as
`from bookcatalog.models import Book, Review, User` and so Alembic
discovers them for migrations.
"""

from bookcatalog.models.user import User
from bookcatalog.models.book import Book
from bookcatalog.models.review import Review

__all__ = [
    "User",
    "Book",
    "Review",
]

"""
Book Model

The central model of the catalog. A book owns its reviews: they are stored
in their own table but only ever created, changed or removed through the
book (see services/reviews.py), and they go away with it.

Derived fields
==============
average_rating and review_count are caches of the review list. They are
recomputed from scratch on every review mutation and never edited directly.

Optimistic concurrency
======================
`version` is SQLAlchemy's version counter. Every UPDATE of a book row is
issued as `... WHERE id = :id AND version = :loaded_version`; if another
request saved the book in between, no row matches and SQLAlchemy raises
StaleDataError, which the catalog service turns into a ConflictError.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookcatalog.database import Base

if TYPE_CHECKING:
    from bookcatalog.models.review import Review


class Book(Base):
    """
    Book model representing a catalog entry.

    Table: books

    Fields:
    - title, author, genre: searchable text (case-insensitive substring)
    - description: Book summary
    - cover_image: URL or key of the cover picture
    - average_rating: mean review rating, 0 when there are no reviews
    - review_count: number of reviews

    Example:
        book = Book(
            title="1984",
            author="George Orwell",
            description="A dystopian novel...",
            genre="Dystopian",
            cover_image="https://covers.example.com/1984.jpg",
        )
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author display name"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Book description or summary"
    )

    genre: Mapped[str] = mapped_column(
        String(100),
        index=True,
        nullable=False,
        comment="Genre label"
    )

    cover_image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Cover image reference"
    )

    # -------------------------------------------------------------------------
    # Derived Rating Fields
    # -------------------------------------------------------------------------
    average_rating: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
        comment="Mean review rating, 0 if no reviews"
    )

    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of reviews for this book"
    )

    # -------------------------------------------------------------------------
    # Timestamps & Version
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    # Ordered by id, which is insertion order: the ledger only ever appends.
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="Review.id",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', author='{self.author}')"

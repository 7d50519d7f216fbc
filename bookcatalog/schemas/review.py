"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Body of POST /books/{book_id}/add-review
- ReviewUpdate: Body of PUT /books/{book_id}/reviews/{review_id}
- ReviewResponse: Stored review fields
- ProjectedReviewResponse: Review as seen by a specific caller
- BookRatingStats: Aggregated rating statistics

Ratings are taken exactly as sent and checked by the review ledger
(services/reviews.py), so `true`, `"5"` or `4.5` are reported as a 400 by
the same rule as an out-of-range value instead of being coerced to an int.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Documented type of the raw rating field
RATING_SCHEMA = {"type": "integer", "minimum": 1, "maximum": 5}


def _blank_to_none(v: str | None) -> str | None:
    if v is not None:
        v = v.strip()
        if not v:
            return None
    return v


class ReviewCreate(BaseModel):
    """
    Schema for creating a new review.

    Example request body:
    {
        "rating": 5,
        "comment": "One of the best books I've ever read..."
    }
    """

    rating: Any = Field(
        default=None,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
        json_schema_extra=RATING_SCHEMA,
    )

    comment: str | None = Field(
        default=None,
        max_length=5000,
        description="Optional review text",
        examples=["This book changed my perspective on..."],
    )

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_empty_if_provided(cls, v: str | None) -> str | None:
        """Treat a whitespace-only comment as no comment."""
        return _blank_to_none(v)


class ReviewUpdate(BaseModel):
    """
    Schema for updating an existing review.

    Both fields are optional; omitted fields are left unchanged.
    """

    rating: Any = Field(
        default=None,
        description="New rating from 1 to 5 stars",
        json_schema_extra=RATING_SCHEMA,
    )

    comment: str | None = Field(
        default=None,
        max_length=5000,
        description="New review text",
    )

    @field_validator("comment")
    @classmethod
    def comment_must_not_be_empty_if_provided(cls, v: str | None) -> str | None:
        """Treat a whitespace-only comment as not provided."""
        return _blank_to_none(v)


class ReviewResponse(BaseModel):
    """Stored review data."""

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    username: str = Field(..., description="Author name at the time of writing")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    comment: str | None = Field(default=None, description="Review text")
    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "username": "booklover",
                "rating": 5,
                "comment": "A must-read classic!",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class ProjectedReviewResponse(ReviewResponse):
    """
    Review as returned inside a book detail.

    is_authorized_user tells the client whether the caller wrote this
    review and may therefore edit or delete it.
    """

    is_authorized_user: bool = Field(
        default=False,
        description="True if the caller is the review author",
    )


class BookRatingStats(BaseModel):
    """Aggregated rating statistics for a book."""

    book_id: int = Field(..., description="Book ID")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)"
    )
    total_reviews: int = Field(
        ...,
        ge=0,
        description="Total number of reviews"
    )
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)"
    )

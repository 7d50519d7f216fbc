"""
Book Pydantic Schemas

- BookCreate: One entry of the batch-create payload
- BookResponse: Stored book fields plus the caller's favorite flag
- BookDetailResponse: BookResponse plus the projected review list
- BookListResponse: Paginated list envelope
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookcatalog.schemas.review import ProjectedReviewResponse


class BookBase(BaseModel):
    """Shared book fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["1984", "Pride and Prejudice"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name",
        examples=["George Orwell"],
    )

    description: str = Field(
        ...,
        max_length=5000,
        description="Book description or summary",
        examples=["A dystopian novel set in a totalitarian society..."],
    )

    genre: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Genre label",
        examples=["Dystopian", "Romance"],
    )

    cover_image: str = Field(
        ...,
        description="Cover image URL",
        examples=["https://covers.example.com/1984.jpg"],
    )

    @field_validator("title", "author", "genre")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        """Validate and normalize required text fields."""
        if not v.strip():
            raise ValueError("Field cannot be empty or whitespace")
        return v.strip()


class BookCreate(BookBase):
    """
    Schema for one book of a batch create.

    average_rating is accepted so catalog exports can be posted unchanged,
    but it is not stored: a new book has no reviews, so its rating is 0.

    Example request body (a list):
    [
        {
            "title": "1984",
            "author": "George Orwell",
            "description": "A dystopian novel...",
            "genre": "Dystopian",
            "cover_image": "https://covers.example.com/1984.jpg"
        }
    ]
    """

    average_rating: float | None = Field(
        default=None,
        ge=0,
        le=5,
        description="Ignored; derived from reviews",
    )


class BookResponse(BookBase):
    """Book data as returned to a caller."""

    id: int = Field(..., description="Unique book identifier")
    average_rating: float = Field(
        default=0.0,
        description="Mean review rating, 0 if no reviews",
    )
    review_count: int = Field(default=0, description="Number of reviews")
    created_at: datetime = Field(..., description="When the book was added")
    updated_at: datetime = Field(..., description="When the book last changed")
    is_favorite: bool = Field(
        default=False,
        description="True if the caller has favorited this book",
    )

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "1984",
                "author": "George Orwell",
                "description": "A dystopian novel set in a totalitarian society.",
                "genre": "Dystopian",
                "cover_image": "https://covers.example.com/1984.jpg",
                "average_rating": 4.5,
                "review_count": 2,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "is_favorite": True,
            }
        },
    )


class BookDetailResponse(BookResponse):
    """
    Single book with its reviews.

    Reviews written by the caller come first; otherwise ledger order.
    """

    reviews: list[ProjectedReviewResponse] = Field(
        default_factory=list,
        description="Reviews of this book",
    )


class BookListResponse(BaseModel):
    """
    Paginated list of books.

    - total: Number of books matching the filters
    - page / limit: The requested window
    - pages: Total number of pages
    """

    items: list[BookResponse] = Field(..., description="Books on this page")
    total: int = Field(..., ge=0, description="Total number of matching books")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 50,
                "page": 1,
                "limit": 10,
                "pages": 5,
            }
        },
    )

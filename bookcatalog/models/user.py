"""
User Model

Represents a registered user and their favorites set.

Favorites
=========
`favorites` is a JSON list of book ids used as a set. It deliberately has
no foreign key: a favorited book may be deleted later, leaving a dangling
id. Readers treat such ids as "not found, so not favorite".
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bookcatalog.database import Base


class User(Base):
    """
    User model representing registered users in the system.

    Table: users

    Indexes:
    - username: Unique index for login lookups
    - email: Unique index

    Example:
        user = User(
            username="johndoe",
            email="john@example.com",
            hashed_password=hash_password("secret123"),
        )
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique username (used for login)"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    # -------------------------------------------------------------------------
    # Favorites
    # -------------------------------------------------------------------------
    favorites: Mapped[list[int]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="Ids of favorited books (weak references)"
    )

    # -------------------------------------------------------------------------
    # Timestamps & Version
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """Developer-friendly string representation."""
        return f"User(id={self.id}, username='{self.username}')"

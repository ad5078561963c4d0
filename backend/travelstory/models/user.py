"""
Travel Story Backend — User SQLAlchemy Model
==============================================

What:  ORM model representing the `users` table.
Who:   Used by AuthService for registration, login, and profile lookups.
When:  Created on registration; never updated or deleted.

Table Design:
    - UUID primary key: opaque, carried in the access token's `userId` claim
    - email: UNIQUE, stored normalised (trimmed, lower-case); the login key
    - password: bcrypt hash only, the plaintext never reaches this table
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from travelstory.database import Base


class User(Base):
    """A registered account; owner of zero or more travel stories."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Login key, normalised to lower case",
    )

    # bcrypt output is 60 characters; leave room for future hash formats
    password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the user's password",
    )

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"

"""
Travel Story Backend — TravelStory SQLAlchemy Model
=====================================================

What:  ORM model representing the `travel_stories` table.
Who:   Used by StoryService for every story operation and by Alembic.

Table Design:
    - user_id: plain indexed UUID reference to users.id. Every query the
      service issues filters on it; there are no cascades.
    - visited_location: JSON array of location names, order preserved
    - visited_date: instant converted from epoch milliseconds, stored in UTC
    - is_favourite: drives the favourites-first ordering of every listing

Query Patterns:
    - List own stories: WHERE user_id = :uid ORDER BY is_favourite DESC, created_on DESC
    - Date filter:      WHERE user_id = :uid AND visited_date BETWEEN :start AND :end
    - Single story:     WHERE id = :id AND user_id = :uid
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from travelstory.database import Base


class TravelStory(Base):
    """
    A single travel-journal entry owned by exactly one user.

    Lifecycle:
        1. Created by add-travel-story
        2. Mutated by edit-story and update-is-favourite
        3. Deleted by delete-story, which also discards the uploaded image
    """

    __tablename__ = "travel_stories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    story: Mapped[str] = mapped_column(Text, nullable=False)

    visited_location: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    image_url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
        default="",
    )

    visited_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    is_favourite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        comment="Owning user; lookup only, no cascade",
    )

    __table_args__ = (
        Index("idx_travel_stories_user_id", "user_id"),
        Index("idx_travel_stories_visited_date", "visited_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<TravelStory(id={self.id}, title='{self.title}', "
            f"is_favourite={self.is_favourite})>"
        )

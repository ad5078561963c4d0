"""
Travel Story Backend — Travel Story Schemas
=============================================

What:  Request and response contracts for the story and media routes.

Wire format:
    Story ids are exposed as `_id`; every other field is the camelCase form of
    the ORM attribute (visitedLocation, imageUrl, visitedDate, isFavourite,
    createdOn, userId). Datetimes are ISO 8601 in UTC.

Request fields are optional at the schema level so the service can answer
missing input with the API's own 400 body.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import Field, field_validator

from travelstory.schemas.common import CamelModel

# Epoch milliseconds arrive as JSON numbers or numeric strings
EpochMillis = Union[int, str]


class StoryWriteRequest(CamelModel):
    """Body of POST /add-travel-story and PUT /edit-story/{id}."""
    title: Optional[str] = None
    story: Optional[str] = None
    visited_location: Optional[Union[List[str], str]] = None
    image_url: Optional[str] = None
    visited_date: Optional[EpochMillis] = None


class FavouriteRequest(CamelModel):
    """Body of PUT /update-is-favourite/{id}."""
    is_favourite: Optional[bool] = None


class StoryResponse(CamelModel):
    """Full representation of one travel story."""
    id: uuid.UUID = Field(alias="_id")
    title: str
    story: str
    visited_location: List[str]
    image_url: str
    visited_date: datetime
    is_favourite: bool
    created_on: datetime
    user_id: uuid.UUID

    @field_validator("visited_date", "created_on")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; every stored instant is UTC
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class StoryEnvelope(CamelModel):
    """Single-story result with a status message."""
    error: bool = False
    story: StoryResponse
    message: str


class StoryListResponse(CamelModel):
    """Result of listing, search and date filtering; favourites come first."""
    stories: List[StoryResponse]


class ImageUploadResponse(CamelModel):
    image_url: str
    message: str = "Image uploaded successfully"

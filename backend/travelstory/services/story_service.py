"""
Travel Story Backend — Story Service (Business Logic)
=======================================================

What:  Ownership-scoped create/list/edit/delete/favourite/search/filter of
       travel stories.
How:   Every statement is filtered by the caller's user id. A story that
       exists but belongs to someone else is reported exactly like a story
       that does not exist (NotFoundError).
Who:   Called by the story route handlers with the identity the auth guard
       resolved.

Ordering:
    Every listing is favourites first, then most recently created first.

Error Handling Strategy:
    Input problems raise ValidationError before any query runs. Driver errors
    are wrapped in DatabaseError with a message safe to return to the client.
    Deleting a story never fails because of its image file: the deletion is
    committed first and the file is discarded best-effort afterwards.
"""

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence, Union

from sqlalchemy import exists, func, literal, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from travelstory.config import settings
from travelstory.exceptions import DatabaseError, NotFoundError, ValidationError
from travelstory.models.travel_story import TravelStory
from travelstory.schemas.story import StoryEnvelope, StoryListResponse, StoryResponse
from travelstory.services.media_service import MediaService, media_service

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_EPOCH_MILLIS_PATTERN = re.compile(r"^-?\d+$")


def parse_epoch_millis(value: Any, field: str) -> datetime:
    """
    Convert epoch milliseconds (int or digit string) to an aware UTC datetime.

    Raises:
        ValidationError: value is missing, boolean, fractional, or non-numeric.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(message=f"{field} must be epoch milliseconds", field=field)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(message=f"{field} must be epoch milliseconds", field=field)
        value = int(value)
    if isinstance(value, str):
        if not _EPOCH_MILLIS_PATTERN.match(value.strip()):
            raise ValidationError(
                message=f"{field} must be epoch milliseconds",
                field=field,
                context={"value": value},
            )
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValidationError(message=f"{field} must be epoch milliseconds", field=field)
    try:
        return EPOCH + timedelta(milliseconds=value)
    except OverflowError:
        raise ValidationError(message=f"{field} is out of range", field=field)


def normalize_locations(value: Union[Sequence[str], str, None]) -> List[str]:
    """Accept a list of names or one comma-joined string; drop blanks."""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else list(value)
    return [part.strip() for part in parts if part and part.strip()]


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class StoryService:
    """
    Business logic layer for travel stories.

    Responsibilities:
        - add_story(), edit_story(), delete_story(), set_favourite()
        - list_stories(), search(), filter_by_date_range()
    """

    def __init__(self, media: MediaService, placeholder_image_url: str):
        self.media = media
        self.placeholder_image_url = placeholder_image_url

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _owned(user_id: uuid.UUID):
        return select(TravelStory).where(TravelStory.user_id == user_id)

    @staticmethod
    def _favourites_first(query):
        return query.order_by(TravelStory.is_favourite.desc(), TravelStory.created_on.desc())

    async def _fetch_all(self, db: AsyncSession, query, action: str) -> StoryListResponse:
        try:
            result = await db.execute(self._favourites_first(query))
            stories = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error while %s: %s", action, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve stories. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return StoryListResponse(stories=[StoryResponse.model_validate(s) for s in stories])

    async def _get_owned(self, db: AsyncSession, user_id: uuid.UUID, story_id: str) -> TravelStory:
        """
        Load one story belonging to `user_id`.

        Malformed ids, missing stories and foreign stories all raise the
        same NotFoundError.
        """
        try:
            parsed_id = uuid.UUID(str(story_id))
        except ValueError:
            raise NotFoundError(resource="travel story", resource_id=str(story_id))

        try:
            result = await db.execute(self._owned(user_id).where(TravelStory.id == parsed_id))
            story = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching story %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the story. Please try again.",
                context={"story_id": str(parsed_id)},
            )

        if story is None:
            raise NotFoundError(resource="travel story", resource_id=str(parsed_id))
        return story

    async def _flush(self, db: AsyncSession, action: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error while %s: %s", action, str(e), exc_info=True)
            raise DatabaseError(
                message=f"Could not {action}. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def _commit(self, db: AsyncSession, action: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error while %s: %s", action, str(e), exc_info=True)
            await db.rollback()
            raise DatabaseError(
                message=f"Could not {action}. Please try again.",
                context={"error_type": type(e).__name__},
            )

    @staticmethod
    def _location_matches(db: AsyncSession, needle: str):
        """
        EXISTS over the individual location names of the outer story.

        Names are unpacked with the dialect's JSON array function so that
        JSON punctuation and escapes never take part in the match.
        """
        if db.get_bind().dialect.name == "postgresql":
            elements = func.json_array_elements_text(TravelStory.visited_location)
        else:
            elements = func.json_each(TravelStory.visited_location)
        names = elements.table_valued("value").alias("location")
        return exists(
            select(literal(1))
            .select_from(names)
            .where(func.lower(names.c.value).contains(needle, autoescape=True))
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def add_story(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        title: Optional[str],
        story: Optional[str],
        visited_location: Union[Sequence[str], str, None],
        image_url: Optional[str],
        visited_date: Any,
    ) -> StoryEnvelope:
        """
        Create a story owned by `user_id`.

        Raises:
            ValidationError: Any of title, story, visitedLocation, imageUrl,
                visitedDate missing, or visitedDate not epoch milliseconds.
        """
        locations = normalize_locations(visited_location)
        if (
            _is_blank(title)
            or _is_blank(story)
            or not locations
            or _is_blank(image_url)
            or visited_date in (None, "")
        ):
            raise ValidationError(message="Please fill all fields")

        travel_story = TravelStory(
            title=title,
            story=story,
            visited_location=locations,
            image_url=image_url,
            visited_date=parse_epoch_millis(visited_date, "visitedDate"),
            is_favourite=False,
            user_id=user_id,
        )
        db.add(travel_story)
        await self._flush(db, "add the story")
        logger.info("Story %s added by user %s", travel_story.id, user_id)

        return StoryEnvelope(
            story=StoryResponse.model_validate(travel_story),
            message="Added Successfully",
        )

    async def edit_story(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        story_id: str,
        title: Optional[str],
        story: Optional[str],
        visited_location: Union[Sequence[str], str, None],
        image_url: Optional[str],
        visited_date: Any,
    ) -> StoryEnvelope:
        """
        Overwrite every mutable field of an owned story.

        imageUrl is optional here: an empty value is replaced by the
        placeholder image URL.

        Raises:
            ValidationError: title, story, visitedLocation or visitedDate missing.
            NotFoundError: No story with that id belongs to `user_id`.
        """
        locations = normalize_locations(visited_location)
        if _is_blank(title) or _is_blank(story) or not locations or visited_date in (None, ""):
            raise ValidationError(message="Please fill all fields")
        parsed_date = parse_epoch_millis(visited_date, "visitedDate")

        travel_story = await self._get_owned(db, user_id, story_id)
        travel_story.title = title
        travel_story.story = story
        travel_story.visited_location = locations
        travel_story.image_url = image_url if not _is_blank(image_url) else self.placeholder_image_url
        travel_story.visited_date = parsed_date
        await self._flush(db, "update the story")
        logger.info("Story %s updated", travel_story.id)

        return StoryEnvelope(
            story=StoryResponse.model_validate(travel_story),
            message="Update Successful",
        )

    async def delete_story(self, db: AsyncSession, user_id: uuid.UUID, story_id: str) -> None:
        """
        Delete an owned story, commit, then discard its image file.

        The file is only touched once the deletion is durable, so a failed
        commit leaves both the row and its image in place.

        Raises:
            NotFoundError: No story with that id belongs to `user_id`.
        """
        travel_story = await self._get_owned(db, user_id, story_id)
        image_url = travel_story.image_url

        await db.delete(travel_story)
        await self._commit(db, "delete the story")
        logger.info("Story %s deleted", travel_story.id)

        await self.media.discard_image(image_url)

    async def set_favourite(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        story_id: str,
        is_favourite: Optional[bool],
    ) -> StoryEnvelope:
        """
        Set the favourite flag of an owned story.

        Raises:
            ValidationError: isFavourite missing.
            NotFoundError: No story with that id belongs to `user_id`.
        """
        if is_favourite is None:
            raise ValidationError(message="isFavourite is required", field="isFavourite")

        travel_story = await self._get_owned(db, user_id, story_id)
        travel_story.is_favourite = is_favourite
        await self._flush(db, "update the story")

        return StoryEnvelope(
            story=StoryResponse.model_validate(travel_story),
            message="Update Successful",
        )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_stories(self, db: AsyncSession, user_id: uuid.UUID) -> StoryListResponse:
        return await self._fetch_all(db, self._owned(user_id), "listing stories")

    async def search(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        query: Optional[str],
    ) -> StoryListResponse:
        """
        Case-insensitive substring search over title, story and locations.

        Raises:
            ValidationError: query missing or blank.
        """
        if _is_blank(query):
            raise ValidationError(message="query is required", field="query")

        # Blank check only: surrounding spaces are part of the substring
        needle = query.lower()
        condition = or_(
            func.lower(TravelStory.title).contains(needle, autoescape=True),
            func.lower(TravelStory.story).contains(needle, autoescape=True),
            self._location_matches(db, needle),
        )
        return await self._fetch_all(db, self._owned(user_id).where(condition), "searching stories")

    async def filter_by_date_range(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        start_date: Any,
        end_date: Any,
    ) -> StoryListResponse:
        """
        Stories whose visited date lies in [start, end], inclusive.

        An inverted range is not an error; it simply matches nothing.

        Raises:
            ValidationError: Either bound missing or not epoch milliseconds.
        """
        start = parse_epoch_millis(start_date, "startDate")
        end = parse_epoch_millis(end_date, "endDate")

        query = self._owned(user_id).where(
            TravelStory.visited_date >= start,
            TravelStory.visited_date <= end,
        )
        return await self._fetch_all(db, query, "filtering stories")


story_service = StoryService(
    media=media_service,
    placeholder_image_url=settings.placeholder_image_url,
)

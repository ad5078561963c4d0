"""
Travel Story Backend — Story Service Tests
============================================

What:  Ownership scoping, favourites-first ordering, search, date filtering,
       placeholder substitution and image cleanup on delete.
How:   Real StoryService against in-memory SQLite; MediaService writes to a
       per-test temporary directory.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from travelstory.exceptions import DatabaseError, NotFoundError, ValidationError
from travelstory.services.story_service import normalize_locations, parse_epoch_millis

VISITED_MS = 1700000000000
PLACEHOLDER_URL = "http://test/assets/placeholder.png"


async def _add(service, db, user_id, **overrides):
    fields = {
        "title": "Trip",
        "story": "Great",
        "visited_location": ["Paris"],
        "image_url": "http://test/uploads/1.png",
        "visited_date": VISITED_MS,
    }
    fields.update(overrides)
    result = await service.add_story(db, user_id, **fields)
    return result.story


class TestEpochMillis:

    def test_integer_and_digit_string_accepted(self):
        expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert parse_epoch_millis(VISITED_MS, "visitedDate") == expected
        assert parse_epoch_millis(str(VISITED_MS), "visitedDate") == expected

    def test_millisecond_precision_kept(self):
        value = parse_epoch_millis(1700000000123, "visitedDate")
        assert value.microsecond == 123000

    @pytest.mark.parametrize("value", ["yesterday", "12.5", "", None, True, 1.5, [1]])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValidationError):
            parse_epoch_millis(value, "visitedDate")


class TestNormalizeLocations:

    def test_comma_joined_string_split(self):
        assert normalize_locations("Paris, Lyon ,") == ["Paris", "Lyon"]

    def test_list_order_preserved(self):
        assert normalize_locations(["Rome", " Milan "]) == ["Rome", "Milan"]

    def test_none_is_empty(self):
        assert normalize_locations(None) == []


class TestAddStory:

    @pytest.mark.asyncio
    async def test_add_story_persists_owned_record(self, db_session, story_service):
        owner = uuid.uuid4()

        story = await _add(story_service, db_session, owner)

        assert story.user_id == owner
        assert story.is_favourite is False
        assert story.visited_location == ["Paris"]
        assert int(story.visited_date.timestamp() * 1000) == VISITED_MS
        assert story.created_on is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["title", "story", "visited_location", "image_url", "visited_date"])
    async def test_every_field_required(self, db_session, story_service, missing):
        with pytest.raises(ValidationError, match="Please fill all fields"):
            await _add(story_service, db_session, uuid.uuid4(), **{missing: None})

    @pytest.mark.asyncio
    async def test_non_numeric_visited_date_rejected(self, db_session, story_service):
        with pytest.raises(ValidationError, match="epoch milliseconds"):
            await _add(story_service, db_session, uuid.uuid4(), visited_date="next tuesday")


class TestOwnership:

    @pytest.mark.asyncio
    async def test_list_never_returns_other_users_stories(self, db_session, story_service):
        alice, bob = uuid.uuid4(), uuid.uuid4()
        await _add(story_service, db_session, alice, title="Alice trip")
        await _add(story_service, db_session, bob, title="Bob trip")

        result = await story_service.list_stories(db_session, alice)

        assert [s.title for s in result.stories] == ["Alice trip"]

    @pytest.mark.asyncio
    async def test_foreign_story_is_not_found_everywhere(self, db_session, story_service):
        alice, bob = uuid.uuid4(), uuid.uuid4()
        bobs = await _add(story_service, db_session, bob)
        story_id = str(bobs.id)

        with pytest.raises(NotFoundError):
            await story_service.edit_story(
                db_session, alice, story_id, "Hacked", "x", ["Nowhere"], "", VISITED_MS
            )
        with pytest.raises(NotFoundError):
            await story_service.set_favourite(db_session, alice, story_id, True)
        with pytest.raises(NotFoundError):
            await story_service.delete_story(db_session, alice, story_id)

        untouched = (await story_service.list_stories(db_session, bob)).stories
        assert len(untouched) == 1
        assert untouched[0].title == "Trip"
        assert untouched[0].is_favourite is False

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, db_session, story_service):
        with pytest.raises(NotFoundError):
            await story_service.set_favourite(db_session, uuid.uuid4(), "not-a-uuid", True)


class TestFavourites:

    @pytest.mark.asyncio
    async def test_favourite_moves_ahead_of_non_favourites(self, db_session, story_service):
        owner = uuid.uuid4()
        first = await _add(story_service, db_session, owner, title="First")
        await _add(story_service, db_session, owner, title="Second")
        await _add(story_service, db_session, owner, title="Third")

        result = await story_service.set_favourite(db_session, owner, str(first.id), True)
        listing = (await story_service.list_stories(db_session, owner)).stories

        assert result.story.is_favourite is True
        assert listing[0].id == first.id
        assert all(not s.is_favourite for s in listing[1:])

    @pytest.mark.asyncio
    async def test_missing_flag_rejected(self, db_session, story_service):
        owner = uuid.uuid4()
        story = await _add(story_service, db_session, owner)

        with pytest.raises(ValidationError):
            await story_service.set_favourite(db_session, owner, str(story.id), None)


class TestEditStory:

    @pytest.mark.asyncio
    async def test_empty_image_url_becomes_placeholder(self, db_session, story_service):
        owner = uuid.uuid4()
        story = await _add(story_service, db_session, owner)

        result = await story_service.edit_story(
            db_session, owner, str(story.id), "Trip", "Great", ["Paris"], "", VISITED_MS
        )

        assert result.story.image_url == PLACEHOLDER_URL
        assert result.message == "Update Successful"

    @pytest.mark.asyncio
    async def test_all_fields_overwritten(self, db_session, story_service):
        owner = uuid.uuid4()
        story = await _add(story_service, db_session, owner)

        result = await story_service.edit_story(
            db_session, owner, str(story.id),
            "New title", "New body", "Kyoto, Osaka", "http://test/uploads/2.png", "1600000000000",
        )

        edited = result.story
        assert edited.title == "New title"
        assert edited.story == "New body"
        assert edited.visited_location == ["Kyoto", "Osaka"]
        assert edited.image_url == "http://test/uploads/2.png"
        assert int(edited.visited_date.timestamp() * 1000) == 1600000000000

    @pytest.mark.asyncio
    async def test_image_url_optional_but_rest_required(self, db_session, story_service):
        owner = uuid.uuid4()
        story = await _add(story_service, db_session, owner)

        with pytest.raises(ValidationError):
            await story_service.edit_story(
                db_session, owner, str(story.id), "", "Great", ["Paris"], None, VISITED_MS
            )


class TestDeleteStory:

    @pytest.mark.asyncio
    async def test_delete_removes_record_and_image(self, db_session, story_service, media_service, sample_image_bytes):
        owner = uuid.uuid4()
        image_url = await media_service.upload_image(sample_image_bytes, "image/png", "photo.png")
        story = await _add(story_service, db_session, owner, image_url=image_url)
        stored = media_service.path_for_url(image_url)
        assert stored.exists()

        await story_service.delete_story(db_session, owner, str(story.id))

        assert (await story_service.list_stories(db_session, owner)).stories == []
        assert not Path(stored).exists()

    @pytest.mark.asyncio
    async def test_image_failure_does_not_fail_delete(self, db_session, story_service, media_service):
        owner = uuid.uuid4()
        story = await _add(story_service, db_session, owner)
        media_service.delete_image = AsyncMock(side_effect=OSError("read-only file system"))

        await story_service.delete_story(db_session, owner, str(story.id))

        media_service.delete_image.assert_awaited_once_with("http://test/uploads/1.png")
        assert (await story_service.list_stories(db_session, owner)).stories == []


    @pytest.mark.asyncio
    async def test_failed_commit_keeps_row_and_image(self, db_session, story_service, media_service, sample_image_bytes):
        owner = uuid.uuid4()
        image_url = await media_service.upload_image(sample_image_bytes, "image/png", "photo.png")
        story = await _add(story_service, db_session, owner, image_url=image_url)
        await db_session.commit()
        db_session.commit = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error")))

        with pytest.raises(DatabaseError):
            await story_service.delete_story(db_session, owner, str(story.id))

        assert media_service.path_for_url(image_url).exists()
        remaining = (await story_service.list_stories(db_session, owner)).stories
        assert [s.id for s in remaining] == [story.id]


class TestSearch:

    @pytest.mark.asyncio
    async def test_case_insensitive_match_on_any_field(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, title="Paris in spring", visited_location=["France"])
        await _add(story_service, db_session, owner, title="Food", story="Best croissant in paris",
                   visited_location=["France"])
        await _add(story_service, db_session, owner, title="Hotel", story="Quiet", visited_location=["PARIS"])
        await _add(story_service, db_session, owner, title="Tokyo", story="Sushi", visited_location=["Japan"])

        result = await story_service.search(db_session, owner, "paris")

        assert sorted(s.title for s in result.stories) == ["Food", "Hotel", "Paris in spring"]

    @pytest.mark.asyncio
    async def test_like_wildcards_are_literal(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, title="100% fun")
        await _add(story_service, db_session, owner, title="1000 fun")

        result = await story_service.search(db_session, owner, "0%")

        assert [s.title for s in result.stories] == ["100% fun"]

    @pytest.mark.asyncio
    async def test_search_is_owner_scoped(self, db_session, story_service):
        alice, bob = uuid.uuid4(), uuid.uuid4()
        await _add(story_service, db_session, bob, title="Paris")

        result = await story_service.search(db_session, alice, "paris")

        assert result.stories == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [None, "", "   "])
    async def test_empty_query_rejected(self, db_session, story_service, query):
        with pytest.raises(ValidationError):
            await story_service.search(db_session, uuid.uuid4(), query)


    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ['"', "[", "]", '", "'])
    async def test_json_punctuation_matches_nothing(self, db_session, story_service, query):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, visited_location=["Paris", "Lyon"])

        result = await story_service.search(db_session, owner, query)

        assert result.stories == []

    @pytest.mark.asyncio
    async def test_location_with_quote_is_found(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, title="Coast", story="Windy",
                   visited_location=['O"Brien Bay'])

        result = await story_service.search(db_session, owner, 'o"brien')

        assert [s.title for s in result.stories] == ["Coast"]

    @pytest.mark.asyncio
    async def test_surrounding_spaces_are_part_of_the_query(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, title="Paris in spring")
        await _add(story_service, db_session, owner, title="Trip to Paris")

        result = await story_service.search(db_session, owner, "paris ")

        assert [s.title for s in result.stories] == ["Paris in spring"]


class TestDateFilter:

    @pytest.mark.asyncio
    async def test_inclusive_range(self, db_session, story_service):
        owner = uuid.uuid4()
        for title, ms in (("early", 1000), ("start", 2000), ("middle", 2500), ("end", 3000), ("late", 4000)):
            await _add(story_service, db_session, owner, title=title, visited_date=ms)

        result = await story_service.filter_by_date_range(db_session, owner, "2000", "3000")

        assert sorted(s.title for s in result.stories) == ["end", "middle", "start"]

    @pytest.mark.asyncio
    async def test_equal_bounds_match_exact_instant(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, title="exact", visited_date=VISITED_MS)
        await _add(story_service, db_session, owner, title="one ms later", visited_date=VISITED_MS + 1)

        result = await story_service.filter_by_date_range(db_session, owner, VISITED_MS, VISITED_MS)

        assert [s.title for s in result.stories] == ["exact"]

    @pytest.mark.asyncio
    async def test_inverted_range_is_empty(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, visited_date=VISITED_MS)

        result = await story_service.filter_by_date_range(db_session, owner, VISITED_MS + 1, VISITED_MS - 1)

        assert result.stories == []

    @pytest.mark.asyncio
    async def test_favourites_first(self, db_session, story_service):
        owner = uuid.uuid4()
        await _add(story_service, db_session, owner, title="plain")
        fav = await _add(story_service, db_session, owner, title="fav")
        await story_service.set_favourite(db_session, owner, str(fav.id), True)

        result = await story_service.filter_by_date_range(db_session, owner, 0, VISITED_MS)

        assert [s.title for s in result.stories] == ["fav", "plain"]

    @pytest.mark.asyncio
    async def test_missing_bound_rejected(self, db_session, story_service):
        with pytest.raises(ValidationError):
            await story_service.filter_by_date_range(db_session, uuid.uuid4(), None, "3000")

"""
Travel Story Backend — Travel Story Route Handlers
====================================================

What:  The authenticated story routes: add, list, edit, delete, favourite,
       search and date-range filter.
How:   The router uses AuthenticatedRoute, so a request without a valid
       bearer token is rejected with 401 before its body is even read. The
       identity's user id is passed to StoryService, which scopes every
       query to it.

Route Inventory:
    POST   /add-travel-story
    GET    /get-all-stories
    PUT    /edit-story/{story_id}
    DELETE /delete-story/{story_id}
    PUT    /update-is-favourite/{story_id}
    GET    /search?query=
    GET    /travel-stories/filter?startDate=&endDate=
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from travelstory.database import get_db_session
from travelstory.dependencies import (
    AuthenticatedRoute,
    Identity,
    get_current_identity,
    get_story_service,
)
from travelstory.schemas.common import ErrorResponse, MessageResponse
from travelstory.schemas.story import (
    FavouriteRequest,
    StoryEnvelope,
    StoryListResponse,
    StoryWriteRequest,
)
from travelstory.services.story_service import StoryService

logger = logging.getLogger(__name__)

router = APIRouter(
    route_class=AuthenticatedRoute,
    tags=["Travel Stories"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)

_NOT_FOUND = {404: {"description": "No such story for this user", "model": ErrorResponse}}
_BAD_INPUT = {400: {"description": "Missing or malformed fields", "model": ErrorResponse}}


@router.post(
    "/add-travel-story",
    status_code=201,
    response_model=StoryEnvelope,
    responses=_BAD_INPUT,
    summary="Create a travel story",
)
async def add_travel_story(
    body: StoryWriteRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> StoryEnvelope:
    return await stories.add_story(
        db=db,
        user_id=identity.user_id,
        title=body.title,
        story=body.story,
        visited_location=body.visited_location,
        image_url=body.image_url,
        visited_date=body.visited_date,
    )


@router.get(
    "/get-all-stories",
    response_model=StoryListResponse,
    summary="List the caller's stories, favourites first",
)
async def get_all_stories(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> StoryListResponse:
    return await stories.list_stories(db=db, user_id=identity.user_id)


@router.put(
    "/edit-story/{story_id}",
    response_model=StoryEnvelope,
    responses={**_BAD_INPUT, **_NOT_FOUND},
    summary="Replace the fields of one of the caller's stories",
)
async def edit_story(
    story_id: str,
    body: StoryWriteRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> StoryEnvelope:
    return await stories.edit_story(
        db=db,
        user_id=identity.user_id,
        story_id=story_id,
        title=body.title,
        story=body.story,
        visited_location=body.visited_location,
        image_url=body.image_url,
        visited_date=body.visited_date,
    )


@router.delete(
    "/delete-story/{story_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete one of the caller's stories and its image",
)
async def delete_story(
    story_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> MessageResponse:
    await stories.delete_story(db=db, user_id=identity.user_id, story_id=story_id)
    return MessageResponse(message="Travel story deleted successfully")


@router.put(
    "/update-is-favourite/{story_id}",
    response_model=StoryEnvelope,
    responses={**_BAD_INPUT, **_NOT_FOUND},
    summary="Mark or unmark one of the caller's stories as favourite",
)
async def update_is_favourite(
    story_id: str,
    body: FavouriteRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> StoryEnvelope:
    return await stories.set_favourite(
        db=db,
        user_id=identity.user_id,
        story_id=story_id,
        is_favourite=body.is_favourite,
    )


@router.get(
    "/search",
    response_model=StoryListResponse,
    responses=_BAD_INPUT,
    summary="Case-insensitive search over title, story and locations",
)
async def search_stories(
    query: Optional[str] = Query(default=None, description="Substring to look for"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> StoryListResponse:
    return await stories.search(db=db, user_id=identity.user_id, query=query)


@router.get(
    "/travel-stories/filter",
    response_model=StoryListResponse,
    responses=_BAD_INPUT,
    summary="Stories visited within an inclusive epoch-millisecond range",
)
async def filter_stories(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    stories: StoryService = Depends(get_story_service),
) -> StoryListResponse:
    return await stories.filter_by_date_range(
        db=db,
        user_id=identity.user_id,
        start_date=start_date,
        end_date=end_date,
    )

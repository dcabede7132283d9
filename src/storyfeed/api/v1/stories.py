"""Story listing and search endpoints.

Thin translation layer over ``StoryService``: query parameters in, camelCase
JSON out. Core errors are not caught here; the application's exception
handlers map them to 400/503/500 responses.
"""

from typing import Annotated

from fastapi import APIRouter, Query, status

from storyfeed.core.exceptions import InvalidArgumentError
from storyfeed.core.logging import get_logger
from storyfeed.dependencies import StoryServiceDep
from storyfeed.schemas.common import ErrorResponse
from storyfeed.schemas.stories import (
    StoriesPageResponse,
    StoryItem,
    StorySearchResponse,
)

logger = get_logger(__name__)

router = APIRouter()

UPSTREAM_ERROR_RESPONSES = {
    503: {"model": ErrorResponse, "description": "Story source unavailable"},
}


@router.get(
    "/newest",
    response_model=StoriesPageResponse,
    status_code=status.HTTP_200_OK,
    summary="Newest stories",
    description="Page through the newest Hacker News stories, optionally filtered by title.",
    responses={
        200: {"description": "A page of stories"},
        400: {"model": ErrorResponse, "description": "Invalid pagination"},
        **UPSTREAM_ERROR_RESPONSES,
    },
)
async def get_newest_stories(
    stories: StoryServiceDep,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    page_size: Annotated[
        int, Query(ge=1, le=100, description="Stories per page")
    ] = 20,
    search: Annotated[
        str | None, Query(max_length=200, description="Title substring filter")
    ] = None,
) -> StoriesPageResponse:
    """Get a page of the newest stories.

    ``totalCount`` is the number of stories left after the title filter,
    so clients can compute the page count.
    """
    logger.info(
        "newest_stories_request", page=page, page_size=page_size, search=search
    )

    result = await stories.get_results(page, page_size, search)

    return StoriesPageResponse(
        stories=[StoryItem.model_validate(s) for s in result.stories],
        total_count=result.total_count,
        page=page,
        page_size=page_size,
        has_more=(page * page_size) < result.total_count,
    )


@router.get(
    "/search",
    response_model=StorySearchResponse,
    status_code=status.HTTP_200_OK,
    summary="Search stories",
    description="Find newest stories whose title contains the search term.",
    responses={
        200: {"description": "Matching stories"},
        400: {"model": ErrorResponse, "description": "Missing search term"},
        **UPSTREAM_ERROR_RESPONSES,
    },
)
async def search_stories(
    stories: StoryServiceDep,
    term: Annotated[
        str | None, Query(max_length=200, description="Title substring")
    ] = None,
) -> StorySearchResponse:
    """Search the newest stories by title."""
    if not term or not term.strip():
        raise InvalidArgumentError("Search term is required", field="term")

    logger.info("search_stories_request", term=term)

    matches = await stories.search_stories(term)

    return StorySearchResponse(
        stories=[StoryItem.model_validate(s) for s in matches],
        total_count=len(matches),
    )

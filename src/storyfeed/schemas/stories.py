"""Story API schemas.

Responses use camelCase keys (``totalCount``, ``pageSize``, ``hasMore``).
"""

from pydantic import ConfigDict, Field

from storyfeed.schemas.common import CamelSchema


class StoryItem(CamelSchema):
    """A single story."""

    id: int = Field(..., description="Hacker News item id")
    title: str = Field(..., description="Story title")
    url: str = Field("", description="Story URL (empty for text posts)")


class StorySearchResponse(CamelSchema):
    """Stories matching a search term, with the match count."""

    stories: list[StoryItem] = Field(..., description="Matching stories")
    total_count: int = Field(..., ge=0, description="Number of matching stories")


class StoriesPageResponse(StorySearchResponse):
    """One page of the newest stories with pagination info.

    ``total_count`` counts the filtered set before slicing.
    """

    page: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, description="Stories per page")
    has_more: bool = Field(..., description="More stories available")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "stories": [
                    {
                        "id": 8863,
                        "title": "My YC app: Dropbox - Throw away your USB drive",
                        "url": "http://www.getdropbox.com/u/2/screencast.html",
                    }
                ],
                "totalCount": 187,
                "page": 1,
                "pageSize": 20,
                "hasMore": True,
            }
        }
    )

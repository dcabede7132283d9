"""FastAPI dependency injection container.

This module provides dependency injection functions for use with FastAPI's
Depends() pattern. Components are wired once per application in
``storyfeed.main.configure_services`` and stored on ``app.state``; the
functions below hand them to routes and can be overridden in tests.
"""

from typing import Annotated

from fastapi import Depends, Request

from storyfeed.config import Settings
from storyfeed.services.cache import CacheService
from storyfeed.services.stories import StoryService


# ========================================
# Settings Dependencies
# ========================================
def get_settings_from_request(request: Request) -> Settings:
    """Get settings from request state (set by the app factory).

    Args:
        request: The current request

    Returns:
        Settings: Application settings
    """
    return request.app.state.settings


# ========================================
# Service Dependencies
# ========================================
def get_cache_service(request: Request) -> CacheService:
    """Get the application-wide story cache."""
    return request.app.state.cache


def get_story_service(request: Request) -> StoryService:
    """Get the story aggregation service.

    Returns:
        StoryService: Service bound to the shared cache and client
    """
    return request.app.state.story_service


SettingsDep = Annotated[Settings, Depends(get_settings_from_request)]
CacheDep = Annotated[CacheService, Depends(get_cache_service)]
StoryServiceDep = Annotated[StoryService, Depends(get_story_service)]

"""API v1 main router.

Aggregates all v1 API routers into a single router for inclusion in the app.
"""

from fastapi import APIRouter

from storyfeed.api.v1.stories import router as stories_router

router = APIRouter()

router.include_router(stories_router, prefix="/stories", tags=["Stories"])

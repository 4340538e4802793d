"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from coursehall.api.v1.endpoints import admin_lessons, admin_users, lessons, sse, webhooks

router = APIRouter()

# Include student lesson routes
router.include_router(lessons.router)

# Include admin routes
router.include_router(admin_lessons.router)
router.include_router(admin_users.router)

# Include provider webhooks
router.include_router(webhooks.router)

# Include live update stream
router.include_router(sse.router)

"""
Admin User Routes

View counters of a single user and per-user view limit overrides.
"""

from fastapi import APIRouter, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehall.api.deps import AdminUser, DbSession
from coursehall.core.exceptions import UserNotFound
from coursehall.models.lesson import Lesson
from coursehall.models.user import User
from coursehall.models.video_view import VideoView
from coursehall.schemas.views import VideoViewRecord, ViewLimitOverride
from coursehall.services import lesson_service, view_service


router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


async def _require_user(user_id: int, db: AsyncSession) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


def _to_record(view: VideoView, lesson: Lesson) -> VideoViewRecord:
    return VideoViewRecord(
        lesson_id=lesson.id,
        lesson_title=lesson.title,
        view_count=view.view_count,
        custom_view_limit=view.custom_view_limit,
        lesson_view_limit=lesson.view_limit,
        last_viewed_at=view.last_viewed_at,
    )


@router.get(
    "/{user_id}/views",
    response_model=list[VideoViewRecord],
    summary="List a user's view counters",
)
async def list_user_views(
    user_id: int,
    admin: AdminUser,
    db: DbSession,
) -> list[VideoViewRecord]:
    await _require_user(user_id, db)
    views = await view_service.list_user_views(user_id, db)
    return [_to_record(view, view.lesson) for view in views]


@router.post(
    "/{user_id}/lessons/{lesson_id}/view-limit",
    response_model=VideoViewRecord,
    summary="Set a per-user view limit",
)
async def set_view_limit(
    user_id: int,
    lesson_id: int,
    data: ViewLimitOverride,
    admin: AdminUser,
    db: DbSession,
) -> VideoViewRecord:
    """
    Override the lesson's view limit for one user.

    A limit of 0 blocks the lesson for that user. The existing view
    count is kept.
    """
    await _require_user(user_id, db)
    lesson = await lesson_service.get_lesson(lesson_id, db)

    view = await view_service.set_override(user_id, lesson.id, data.limit, db)
    return _to_record(view, lesson)


@router.delete(
    "/{user_id}/lessons/{lesson_id}/view-limit",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a per-user view limit",
)
async def clear_view_limit(
    user_id: int,
    lesson_id: int,
    admin: AdminUser,
    db: DbSession,
) -> None:
    """Fall back to the lesson's own limit. Does nothing if none was set."""
    await _require_user(user_id, db)
    lesson = await lesson_service.get_lesson(lesson_id, db)

    await view_service.clear_override(user_id, lesson.id, db)

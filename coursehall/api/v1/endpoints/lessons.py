"""
Lesson Routes

Student-facing endpoints: open a lesson in the player, report playback
progress and check the remaining view quota.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Query

from coursehall.api.deps import CurrentUser, DbSession, Mux, Storage
from coursehall.models.user import User
from coursehall.schemas.lesson import (
    AttachmentResponse,
    ChapterRef,
    CourseRef,
    LessonDetailResponse,
    Watermark,
)
from coursehall.schemas.views import (
    RecentLessonResponse,
    ViewAttempt,
    ViewAttemptResponse,
    ViewStatusResponse,
)
from coursehall.services import lesson_service, playback_service, view_service


router = APIRouter(prefix="/lessons", tags=["Lessons"])


def build_watermark(user: User) -> Watermark:
    """Overlay text: the viewer's phone (or email) and the current time."""
    now = datetime.now(timezone.utc)
    identity = user.phone or user.email
    return Watermark(
        text=f"{identity} | {now.strftime('%Y-%m-%d %H:%M:%S')}",
        phone=user.phone,
        timestamp=now,
    )


# Declared before /{lesson_id} so "recent" is not parsed as an id
@router.get(
    "/recent",
    response_model=list[RecentLessonResponse],
    summary="Recently watched lessons",
)
async def get_recent_lessons(
    current_user: CurrentUser,
    db: DbSession,
    limit: Annotated[int, Query(ge=1, le=20)] = 5,
) -> list[RecentLessonResponse]:
    """Get the lessons the current user watched most recently."""
    views = await view_service.recent_views(current_user, db, limit=limit)

    return [
        RecentLessonResponse(
            lesson_id=view.lesson_id,
            title=view.lesson.title,
            duration=view.lesson.duration,
            course_id=view.lesson.chapter.course.id,
            course_title=view.lesson.chapter.course.title,
            course_slug=view.lesson.chapter.course.slug,
            view_count=view.view_count,
            last_viewed_at=view.last_viewed_at,
        )
        for view in views
    ]


@router.get(
    "/{lesson_id}",
    response_model=LessonDetailResponse,
    summary="Open a lesson",
)
async def get_lesson(
    lesson_id: int,
    current_user: CurrentUser,
    db: DbSession,
    mux: Mux,
    storage: Storage,
) -> LessonDetailResponse:
    """
    Get a lesson for the player.

    Requires enrollment unless the lesson is free. The signed playback
    URL is only included while the user still has views left and the
    video is ready; otherwise ``can_watch`` tells the player why.

    Raises:
        HTTPException: 404 if not found, 403 if not enrolled.
    """
    authorization = await playback_service.authorize(
        user=current_user,
        lesson_id=lesson_id,
        db=db,
        mux=mux,
        storage=storage,
    )
    lesson = authorization.lesson

    return LessonDetailResponse(
        id=lesson.id,
        title=lesson.title,
        type=lesson.type,
        description=lesson.description,
        duration=lesson.duration,
        is_free=lesson.is_free,
        mux_status=lesson.mux_status,
        can_watch=authorization.can_watch,
        playback_id=authorization.playback_id,
        signed_url=authorization.signed_url,
        thumbnail_url=authorization.thumbnail_url,
        view_status=ViewStatusResponse.from_status(authorization.view_status),
        attachments=[AttachmentResponse(**a) for a in authorization.attachments],
        watermark=build_watermark(current_user),
        chapter=ChapterRef(id=lesson.chapter.id, title=lesson.chapter.title),
        course=CourseRef(
            id=lesson.chapter.course.id,
            title=lesson.chapter.course.title,
            slug=lesson.chapter.course.slug,
        ),
    )


@router.post(
    "/{lesson_id}/view",
    response_model=ViewAttemptResponse,
    summary="Report playback progress",
)
async def record_view(
    lesson_id: int,
    attempt: ViewAttempt,
    current_user: CurrentUser,
    db: DbSession,
) -> ViewAttemptResponse:
    """
    Report how much of a lesson was watched.

    A session at or above 99% counts as one view. Once the limit is
    reached the response has ``limit_reached`` set; this is not an error.

    Raises:
        HTTPException: 404 if not found, 403 if not enrolled.
    """
    lesson = await lesson_service.get_lesson(lesson_id, db)
    await lesson_service.ensure_lesson_access(current_user, lesson, db)

    result = await view_service.record_attempt(
        user=current_user,
        lesson=lesson,
        watch_percentage=attempt.watch_percentage,
        db=db,
    )
    return ViewAttemptResponse.from_result(result)


@router.get(
    "/{lesson_id}/view-status",
    response_model=ViewStatusResponse,
    summary="Get view quota",
)
async def get_view_status(
    lesson_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> ViewStatusResponse:
    """Get the current user's view count and limit for a lesson."""
    lesson = await lesson_service.get_lesson(lesson_id, db)
    await lesson_service.ensure_lesson_access(current_user, lesson, db)

    view_status = await view_service.get_status(current_user, lesson, db)
    return ViewStatusResponse.from_status(view_status)

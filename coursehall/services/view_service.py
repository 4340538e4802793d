"""
View Service

Per-user view accounting for video lessons.

A view only counts when the student watched at least 99% of the video,
so scrubbing or sampling never uses up a limited view. Each attempt
counts at most once, applied as a single conditional UPDATE so two
concurrent completions cannot both pass the limit check.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursehall.models.course import Chapter
from coursehall.models.lesson import Lesson
from coursehall.models.user import User
from coursehall.models.video_view import VideoView

logger = logging.getLogger(__name__)

COMPLETED_VIEW_THRESHOLD = 99.0


@dataclass(frozen=True)
class ViewStatus:
    """
    View quota of one user on one lesson.

    ``limit`` is None for unlimited (admins).
    """
    lesson_id: int
    view_count: int
    limit: Optional[int]

    @property
    def can_watch(self) -> bool:
        return self.limit is None or self.view_count < self.limit

    @property
    def remaining_views(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(0, self.limit - self.view_count)


@dataclass(frozen=True)
class ViewAttemptResult:
    """Outcome of a reported playback."""
    status: ViewStatus
    counted: bool
    limit_reached: bool


def resolve_limit(
    lesson: Lesson,
    view: Optional[VideoView],
    is_admin: bool,
) -> Optional[int]:
    """Effective view limit: override, else lesson default; None for admins."""
    if is_admin:
        return None
    if view is not None and view.custom_view_limit is not None:
        return view.custom_view_limit
    return lesson.view_limit


def build_status(user: User, lesson: Lesson, view: Optional[VideoView]) -> ViewStatus:
    return ViewStatus(
        lesson_id=lesson.id,
        view_count=view.view_count if view is not None else 0,
        limit=resolve_limit(lesson, view, user.is_admin),
    )


async def get_view(
    user_id: int,
    lesson_id: int,
    db: AsyncSession,
) -> Optional[VideoView]:
    result = await db.execute(
        select(VideoView).where(
            VideoView.user_id == user_id,
            VideoView.lesson_id == lesson_id,
        )
    )
    return result.scalar_one_or_none()


async def get_or_create_view(
    user_id: int,
    lesson_id: int,
    db: AsyncSession,
) -> VideoView:
    """
    Get the view counter for a user/lesson, creating it on first use.

    A concurrent insert for the same pair loses on the unique constraint
    and re-reads the winner's row.
    """
    view = await get_view(user_id, lesson_id, db)
    if view is not None:
        return view

    try:
        async with db.begin_nested():
            view = VideoView(user_id=user_id, lesson_id=lesson_id, view_count=0)
            db.add(view)
    except IntegrityError:
        view = await get_view(user_id, lesson_id, db)
        if view is None:
            raise

    return view


async def get_status(user: User, lesson: Lesson, db: AsyncSession) -> ViewStatus:
    """
    Get a user's view status for a lesson.

    Read-only: a missing counter is treated as zero views and no row is
    created.
    """
    view = await get_view(user.id, lesson.id, db)
    return build_status(user, lesson, view)


async def record_attempt(
    user: User,
    lesson: Lesson,
    watch_percentage: float,
    db: AsyncSession,
) -> ViewAttemptResult:
    """
    Record a playback attempt.

    ``last_viewed_at`` is always refreshed. At or above the completion
    threshold the count is incremented by one, unless a non-admin has
    reached the effective limit, in which case the attempt is reported
    as ``limit_reached`` and nothing is counted.

    Args:
        user: Current user.
        lesson: Lesson being watched.
        watch_percentage: Share of the video watched (0-100).
        db: Database session.

    Returns:
        ViewAttemptResult with the post-update status.
    """
    now = datetime.now(timezone.utc)
    view = await get_or_create_view(user.id, lesson.id, db)

    counted = False
    limit_reached = False

    if watch_percentage >= COMPLETED_VIEW_THRESHOLD:
        stmt = update(VideoView).where(VideoView.id == view.id)
        if not user.is_admin:
            stmt = stmt.where(
                VideoView.view_count
                < func.coalesce(VideoView.custom_view_limit, lesson.view_limit)
            )
        result = await db.execute(
            stmt.values(view_count=VideoView.view_count + 1, last_viewed_at=now)
            .execution_options(synchronize_session=False)
        )
        counted = result.rowcount == 1
        limit_reached = not counted

    if not counted:
        await db.execute(
            update(VideoView)
            .where(VideoView.id == view.id)
            .values(last_viewed_at=now)
            .execution_options(synchronize_session=False)
        )

    await db.commit()
    await db.refresh(view)

    if limit_reached:
        logger.info(
            "View limit reached for user %s on lesson %s (%s views)",
            user.id, lesson.id, view.view_count,
        )

    return ViewAttemptResult(
        status=build_status(user, lesson, view),
        counted=counted,
        limit_reached=limit_reached,
    )


async def set_override(
    user_id: int,
    lesson_id: int,
    limit: int,
    db: AsyncSession,
) -> VideoView:
    """
    Set a per-user view limit for a lesson.

    Zero is a valid limit that blocks all viewing; it is not the same as
    having no override.
    """
    if limit < 0:
        raise ValueError("View limit cannot be negative")

    view = await get_or_create_view(user_id, lesson_id, db)
    view.custom_view_limit = limit
    await db.commit()
    await db.refresh(view)

    logger.info("Set view limit %s for user %s on lesson %s", limit, user_id, lesson_id)
    return view


async def clear_override(
    user_id: int,
    lesson_id: int,
    db: AsyncSession,
) -> Optional[VideoView]:
    """Remove a per-user view limit. The view count is left as is."""
    view = await get_view(user_id, lesson_id, db)
    if view is None:
        return None

    view.custom_view_limit = None
    await db.commit()
    await db.refresh(view)

    logger.info("Cleared view limit for user %s on lesson %s", user_id, lesson_id)
    return view


async def list_user_views(user_id: int, db: AsyncSession) -> List[VideoView]:
    """All view counters of a user with their lessons loaded."""
    result = await db.execute(
        select(VideoView)
        .where(VideoView.user_id == user_id)
        .options(selectinload(VideoView.lesson))
        .order_by(VideoView.last_viewed_at.desc())
    )
    return list(result.scalars().all())


async def recent_views(user: User, db: AsyncSession, limit: int = 5) -> List[VideoView]:
    """Most recently watched lessons of a user, newest first."""
    result = await db.execute(
        select(VideoView)
        .where(
            VideoView.user_id == user.id,
            VideoView.last_viewed_at.is_not(None),
        )
        .options(
            selectinload(VideoView.lesson)
            .selectinload(Lesson.chapter)
            .selectinload(Chapter.course)
        )
        .order_by(VideoView.last_viewed_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())

"""
Lesson Service

Lesson lookup, access checks and the admin create operation.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursehall.core.exceptions import LessonNotFound, NotEnrolled
from coursehall.models.course import Chapter
from coursehall.models.enrollment import Enrollment
from coursehall.models.enums import LessonType, MuxStatus
from coursehall.models.lesson import Lesson
from coursehall.models.user import User
from coursehall.schemas.lesson import LessonCreate

logger = logging.getLogger(__name__)


async def get_lesson(lesson_id: int, db: AsyncSession) -> Lesson:
    """
    Get a lesson with its chapter and course loaded.

    Raises:
        LessonNotFound: 404 if the lesson does not exist.
    """
    result = await db.execute(
        select(Lesson)
        .where(Lesson.id == lesson_id)
        .options(selectinload(Lesson.chapter).selectinload(Chapter.course))
    )
    lesson = result.scalar_one_or_none()

    if lesson is None:
        raise LessonNotFound(lesson_id)

    return lesson


async def is_enrolled(user_id: int, course_id: int, db: AsyncSession) -> bool:
    result = await db.execute(
        select(Enrollment.id).where(
            Enrollment.user_id == user_id,
            Enrollment.course_id == course_id,
        )
    )
    return result.first() is not None


async def ensure_lesson_access(user: User, lesson: Lesson, db: AsyncSession) -> None:
    """
    Check that a user may open a lesson at all.

    Free lessons are open to everyone, admins see everything, otherwise
    an enrollment in the lesson's course is required. View quota is not
    checked here.

    Raises:
        NotEnrolled: 403 if the user has no enrollment.
    """
    if lesson.is_free or user.is_admin:
        return

    if not await is_enrolled(user.id, lesson.chapter.course_id, db):
        raise NotEnrolled()


async def create_lesson(
    chapter_id: int,
    data: LessonCreate,
    db: AsyncSession,
) -> Lesson:
    """
    Create a lesson at the end of a chapter (unless sort_order is given).

    Video lessons start ``pending`` until a video is uploaded; pdf and
    text lessons are ``ready`` immediately.
    """
    chapter = await db.get(Chapter, chapter_id)
    if chapter is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Chapter with ID {chapter_id} not found",
        )

    sort_order: Optional[int] = data.sort_order
    if sort_order is None:
        max_order = await db.scalar(
            select(func.max(Lesson.sort_order)).where(Lesson.chapter_id == chapter_id)
        )
        sort_order = (max_order or 0) + 1

    lesson = Lesson(
        chapter_id=chapter_id,
        title=data.title,
        type=data.type,
        description=data.description,
        view_limit=data.view_limit,
        is_free=data.is_free,
        sort_order=sort_order,
        attachments=[a.model_dump() for a in data.attachments] if data.attachments else None,
        mux_status=MuxStatus.PENDING if data.type == LessonType.VIDEO else MuxStatus.READY,
    )
    db.add(lesson)
    await db.commit()
    await db.refresh(lesson)

    logger.info("Created %s lesson %s in chapter %s", lesson.type.value, lesson.id, chapter_id)

    return lesson


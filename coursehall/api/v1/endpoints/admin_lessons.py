"""
Admin Lesson Routes

Lesson creation and deletion plus the video upload flow used by the
course editor.
"""

from fastapi import APIRouter, status

from coursehall.api.deps import AdminUser, DbSession, Mux
from coursehall.schemas.lesson import (
    LessonCreate,
    LessonResponse,
    LessonVideoStatus,
    SignedUrlsResponse,
    UploadUrlResponse,
)
from coursehall.services import lesson_service, playback_service, video_service


router = APIRouter(prefix="/admin", tags=["Admin - Lessons"])


@router.post(
    "/chapters/{chapter_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a lesson",
)
async def create_lesson(
    chapter_id: int,
    data: LessonCreate,
    admin: AdminUser,
    db: DbSession,
) -> LessonResponse:
    """
    Create a lesson at the end of a chapter.

    Video lessons start as ``pending`` until a video has been uploaded
    and processed.
    """
    lesson = await lesson_service.create_lesson(chapter_id, data, db)
    return LessonResponse.model_validate(lesson)


@router.delete(
    "/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a lesson",
)
async def delete_lesson(
    lesson_id: int,
    admin: AdminUser,
    db: DbSession,
    mux: Mux,
) -> None:
    """
    Delete a lesson, its video and all view counters.

    The video is deleted at Mux first; if that fails the lesson is kept
    and 502 is returned so the delete can be retried.
    """
    await video_service.delete_lesson(lesson_id, db, mux)


@router.post(
    "/lessons/{lesson_id}/upload-url",
    response_model=UploadUrlResponse,
    summary="Start a video upload",
)
async def create_upload_url(
    lesson_id: int,
    admin: AdminUser,
    db: DbSession,
    mux: Mux,
) -> UploadUrlResponse:
    """
    Get a direct upload URL for a lesson video.

    Replaces any existing video. The lesson is ``pending`` until Mux
    reports the new asset ready.
    """
    upload = await video_service.begin_upload(lesson_id, db, mux)
    return UploadUrlResponse(upload_url=upload.upload_url, upload_id=upload.upload_id)


@router.get(
    "/lessons/{lesson_id}/signed-urls",
    response_model=SignedUrlsResponse,
    summary="Get preview URLs",
)
async def get_signed_urls(
    lesson_id: int,
    admin: AdminUser,
    db: DbSession,
    mux: Mux,
) -> SignedUrlsResponse:
    """Signed playback and thumbnail URLs for previewing a ready video."""
    urls = await playback_service.admin_signed_urls(lesson_id, db, mux)
    return SignedUrlsResponse(**urls)


@router.get(
    "/lessons/{lesson_id}/status",
    response_model=LessonVideoStatus,
    summary="Get video processing status",
)
async def get_video_status(
    lesson_id: int,
    admin: AdminUser,
    db: DbSession,
) -> LessonVideoStatus:
    lesson = await lesson_service.get_lesson(lesson_id, db)
    return LessonVideoStatus(
        id=lesson.id,
        mux_status=lesson.mux_status,
        mux_upload_id=lesson.mux_upload_id,
        mux_asset_id=lesson.mux_asset_id,
        playback_id=lesson.mux_playback_id,
        duration=lesson.duration,
    )

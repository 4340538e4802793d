"""
Playback Service

Decides whether a user gets a working playback URL for a lesson.

Two kinds of "no":
- not enrolled: NotEnrolled (403), the user may not see the lesson at all
- quota used up or video still processing: a normal result with
  ``can_watch`` false / no URL, so the player can explain what happened
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from coursehall.core.exceptions import VideoNotReady
from coursehall.models.lesson import Lesson
from coursehall.models.user import User
from coursehall.services import lesson_service, view_service
from coursehall.services.mux_service import STREAM_BASE, MuxService
from coursehall.services.storage_service import StorageService
from coursehall.services.view_service import ViewStatus

logger = logging.getLogger(__name__)


@dataclass
class PlaybackAuthorization:
    """Result of a playback check."""
    lesson: Lesson
    view_status: ViewStatus
    playback_id: Optional[str] = None
    signed_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    attachments: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def can_watch(self) -> bool:
        return self.view_status.can_watch


def sign_attachments(lesson: Lesson, storage: StorageService) -> List[Dict[str, Any]]:
    """Attachments with download URLs. Not limited by the view quota."""
    return [
        {**attachment, "download_url": storage.presigned_url(attachment["url"])}
        for attachment in lesson.attachments or []
    ]


async def authorize(
    user: User,
    lesson_id: int,
    db: AsyncSession,
    mux: MuxService,
    storage: StorageService,
) -> PlaybackAuthorization:
    """
    Check access to a lesson and build its playback URLs.

    Args:
        user: Current user.
        lesson_id: Lesson to open.
        db: Database session.
        mux: Mux client for token signing.
        storage: Storage client for attachment URLs.

    Returns:
        PlaybackAuthorization; ``signed_url`` is set only if the user can
        watch and the video is ready.

    Raises:
        LessonNotFound: 404 if the lesson does not exist.
        NotEnrolled: 403 for a paid lesson without enrollment.
        PlaybackSigningFailed: 500 if the signing key is unusable.
    """
    lesson = await lesson_service.get_lesson(lesson_id, db)
    await lesson_service.ensure_lesson_access(user, lesson, db)

    view_status = await view_service.get_status(user, lesson, db)
    authorization = PlaybackAuthorization(
        lesson=lesson,
        view_status=view_status,
        attachments=sign_attachments(lesson, storage),
    )

    if lesson.mux_playback_id:
        authorization.thumbnail_url = mux.thumbnail_url(lesson.mux_playback_id)

    if view_status.can_watch and lesson.mux_playback_id:
        signed_url = mux.playback_url(lesson.mux_playback_id)
        if signed_url is None:
            logger.warning(
                "Signing key not configured, withholding playback for lesson %s",
                lesson.id,
            )
        else:
            authorization.playback_id = lesson.mux_playback_id
            authorization.signed_url = signed_url

    return authorization


async def admin_signed_urls(
    lesson_id: int,
    db: AsyncSession,
    mux: MuxService,
) -> Dict[str, Optional[str]]:
    """
    Preview URLs for the admin lesson editor.

    Raises:
        LessonNotFound: 404 if the lesson does not exist.
        VideoNotReady: 409 if the lesson has no playback id yet.
    """
    lesson = await lesson_service.get_lesson(lesson_id, db)
    if not lesson.mux_playback_id:
        raise VideoNotReady()

    playback_id = lesson.mux_playback_id
    token = mux.playback_token(playback_id)

    return {
        "playback_id": playback_id,
        "playback_token": token,
        "thumbnail_url": mux.thumbnail_url(playback_id),
        "playback_url": f"{STREAM_BASE}/{playback_id}.m3u8?token={token}" if token else None,
    }

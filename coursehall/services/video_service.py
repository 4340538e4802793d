"""
Video Service

Lesson video lifecycle driven by Mux:

    begin_upload -> pending
    video.upload.asset_created -> asset id recorded
    video.asset.ready -> ready (playback id, duration)
    video.asset.errored -> error

Webhooks find lessons by the Mux upload/asset id, never by lesson id.
Replacing a video clears those ids, so late webhooks for the old video
match nothing and are dropped. Transitions only apply to ``pending``
lessons, which makes duplicate deliveries no-ops.
"""

import logging
import math
from typing import List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coursehall.core.exceptions import (
    NotAVideoLesson,
    ProviderCredentialsMissing,
    VideoDeletionFailed,
)
from coursehall.models.course import Chapter
from coursehall.models.enums import MuxStatus
from coursehall.models.lesson import Lesson
from coursehall.schemas.events import LessonUpdateData, LessonUpdatedEvent
from coursehall.schemas.webhook import AssetErrored, AssetReady, MuxWebhookEvent, UploadAssetCreated
from coursehall.services import lesson_service
from coursehall.services.live_updates import LessonUpdateBroadcaster, broadcaster
from coursehall.services.mux_service import MuxService, MuxUpload

logger = logging.getLogger(__name__)

# Columns written by webhook transitions
VIDEO_FIELDS = ["mux_upload_id", "mux_asset_id", "mux_playback_id", "mux_status", "duration"]


def round_duration(seconds: Optional[float]) -> Optional[int]:
    """Round half up to whole seconds."""
    if seconds is None:
        return None
    return int(math.floor(seconds + 0.5))


async def _find_lesson(db: AsyncSession, *criteria) -> Optional[Lesson]:
    result = await db.execute(
        select(Lesson)
        .where(*criteria)
        .options(selectinload(Lesson.chapter).selectinload(Chapter.course))
    )
    return result.scalars().first()


# ============== Upload ==============

async def begin_upload(lesson_id: int, db: AsyncSession, mux: MuxService) -> MuxUpload:
    """
    Start a direct upload for a lesson video.

    An existing video is deleted from Mux first. That cleanup is best
    effort: a failure is logged and the new upload goes ahead. Local
    video fields are cleared and committed before the upload session is
    created, so a failed session leaves the lesson pending with no video.

    Raises:
        LessonNotFound: 404 if the lesson does not exist.
        NotAVideoLesson: 400 for pdf/text lessons.
        ProviderCredentialsMissing: 500 if Mux is not configured.
        ProviderRequestFailed: 502 if Mux refused the upload.
    """
    lesson = await lesson_service.get_lesson(lesson_id, db)

    if not lesson.is_video:
        raise NotAVideoLesson()

    if not mux.is_configured:
        raise ProviderCredentialsMissing()

    if lesson.mux_asset_id:
        old_asset_id = lesson.mux_asset_id
        if await mux.delete_asset(old_asset_id):
            logger.info("Deleted old asset %s of lesson %s", old_asset_id, lesson.id)
        else:
            logger.warning(
                "Could not delete old asset %s of lesson %s, continuing with new upload",
                old_asset_id, lesson.id,
            )

    lesson.mux_upload_id = None
    lesson.mux_asset_id = None
    lesson.mux_playback_id = None
    lesson.duration = None
    lesson.mux_status = MuxStatus.PENDING
    await db.commit()

    upload = await mux.create_upload()

    lesson.mux_upload_id = upload.upload_id
    await db.commit()

    logger.info("Started upload %s for lesson %s", upload.upload_id, lesson.id)
    return upload


# ============== Webhook Transitions ==============

def build_lesson_event(lesson: Lesson, mux: MuxService) -> LessonUpdatedEvent:
    thumbnail_url = None
    if lesson.mux_playback_id:
        thumbnail_url = mux.thumbnail_url(lesson.mux_playback_id)

    return LessonUpdatedEvent(
        lesson_id=lesson.id,
        course_id=lesson.chapter.course_id,
        data=LessonUpdateData(
            mux_status=lesson.mux_status,
            playback_id=lesson.mux_playback_id,
            thumbnail_url=thumbnail_url,
            duration=lesson.duration,
        ),
    )


async def on_upload_asset_created(
    upload_id: str,
    asset_id: str,
    db: AsyncSession,
) -> Optional[Lesson]:
    """
    Record the asset created from an upload.

    Returns:
        The updated lesson, or None if no current upload matched.
    """
    lesson = await _find_lesson(db, Lesson.mux_upload_id == upload_id)
    if lesson is None:
        logger.info("No lesson for upload %s (asset %s), ignoring", upload_id, asset_id)
        return None

    result = await db.execute(
        update(Lesson)
        .where(
            Lesson.id == lesson.id,
            Lesson.mux_upload_id == upload_id,
            or_(Lesson.mux_asset_id.is_(None), Lesson.mux_asset_id == asset_id),
        )
        .values(mux_asset_id=asset_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(
            "Lesson %s already has a different asset than %s, ignoring",
            lesson.id, asset_id,
        )
        return None

    await db.commit()
    await db.refresh(lesson, attribute_names=VIDEO_FIELDS)

    logger.info("Lesson %s linked to asset %s", lesson.id, asset_id)
    return lesson


async def _find_by_asset_or_upload(
    asset_id: str,
    upload_id: Optional[str],
    db: AsyncSession,
) -> Optional[Lesson]:
    """
    Find the lesson for an asset event.

    Falls back to the upload id when the asset event arrives before
    ``video.upload.asset_created`` has recorded the asset id.
    """
    lesson = await _find_lesson(db, Lesson.mux_asset_id == asset_id)
    if lesson is None and upload_id:
        lesson = await _find_lesson(
            db,
            Lesson.mux_upload_id == upload_id,
            Lesson.mux_asset_id.is_(None),
        )
    return lesson


def _pending_for_asset(lesson: Lesson, asset_id: str, upload_id: Optional[str]):
    """Guard for asset transitions: still pending and still this asset."""
    matches_asset = Lesson.mux_asset_id == asset_id
    if upload_id:
        matches_asset = or_(
            matches_asset,
            and_(Lesson.mux_asset_id.is_(None), Lesson.mux_upload_id == upload_id),
        )
    return and_(
        Lesson.id == lesson.id,
        Lesson.mux_status == MuxStatus.PENDING,
        matches_asset,
    )


async def on_asset_ready(
    asset_id: str,
    playback_ids: List[str],
    duration: Optional[float],
    db: AsyncSession,
    mux: MuxService,
    upload_id: Optional[str] = None,
    publisher: LessonUpdateBroadcaster = broadcaster,
) -> Optional[Lesson]:
    """
    Mark a lesson's video ready and notify the course editor.

    An event without playback ids leaves the lesson pending; a lesson is
    never ready without a playback id.

    Returns:
        The updated lesson, or None if nothing changed.
    """
    lesson = await _find_by_asset_or_upload(asset_id, upload_id, db)
    if lesson is None:
        logger.info("No lesson for asset %s, ignoring ready event", asset_id)
        return None

    if not playback_ids:
        logger.warning(
            "Asset %s ready without playback ids, lesson %s stays pending",
            asset_id, lesson.id,
        )
        return None

    result = await db.execute(
        update(Lesson)
        .where(_pending_for_asset(lesson, asset_id, upload_id))
        .values(
            mux_asset_id=asset_id,
            mux_playback_id=playback_ids[0],
            mux_status=MuxStatus.READY,
            duration=round_duration(duration),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info("Lesson %s not pending for asset %s, ignoring ready event", lesson.id, asset_id)
        return None

    await db.commit()
    await db.refresh(lesson, attribute_names=VIDEO_FIELDS)

    logger.info("Lesson %s video ready (playback %s)", lesson.id, lesson.mux_playback_id)
    publisher.publish(lesson.chapter.course_id, build_lesson_event(lesson, mux))
    return lesson


async def on_asset_errored(
    asset_id: str,
    db: AsyncSession,
    mux: MuxService,
    upload_id: Optional[str] = None,
    publisher: LessonUpdateBroadcaster = broadcaster,
) -> Optional[Lesson]:
    """
    Mark a lesson's video as failed and notify the course editor.

    Returns:
        The updated lesson, or None if nothing changed.
    """
    lesson = await _find_by_asset_or_upload(asset_id, upload_id, db)
    if lesson is None:
        logger.info("No lesson for asset %s, ignoring errored event", asset_id)
        return None

    result = await db.execute(
        update(Lesson)
        .where(_pending_for_asset(lesson, asset_id, upload_id))
        .values(mux_asset_id=asset_id, mux_status=MuxStatus.ERROR)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info("Lesson %s not pending for asset %s, ignoring errored event", lesson.id, asset_id)
        return None

    await db.commit()
    await db.refresh(lesson, attribute_names=VIDEO_FIELDS)

    logger.warning("Lesson %s video processing failed (asset %s)", lesson.id, asset_id)
    publisher.publish(lesson.chapter.course_id, build_lesson_event(lesson, mux))
    return lesson


async def handle_webhook(
    event: MuxWebhookEvent,
    db: AsyncSession,
    mux: MuxService,
    publisher: LessonUpdateBroadcaster = broadcaster,
) -> Optional[Lesson]:
    """Dispatch a decoded Mux webhook to its transition."""
    if isinstance(event, UploadAssetCreated):
        return await on_upload_asset_created(event.data.id, event.data.asset_id, db)

    if isinstance(event, AssetReady):
        return await on_asset_ready(
            event.data.id,
            [ref.id for ref in event.data.playback_ids],
            event.data.duration,
            db,
            mux,
            upload_id=event.data.upload_id,
            publisher=publisher,
        )

    if isinstance(event, AssetErrored):
        return await on_asset_errored(
            event.data.id,
            db,
            mux,
            upload_id=event.data.upload_id,
            publisher=publisher,
        )

    return None


# ============== Deletion ==============

async def delete_lesson_video(lesson: Lesson, mux: MuxService) -> None:
    """
    Delete a lesson's Mux asset ahead of deleting the lesson.

    Unlike the cleanup in begin_upload, failure here is fatal: dropping
    the lesson would lose the only reference to a billed asset.

    Raises:
        VideoDeletionFailed: 502 if the asset could not be deleted.
    """
    if not lesson.mux_asset_id:
        return

    if not await mux.delete_asset(lesson.mux_asset_id):
        logger.error(
            "Refusing to delete lesson %s: asset %s could not be deleted",
            lesson.id, lesson.mux_asset_id,
        )
        raise VideoDeletionFailed()


async def delete_lesson(lesson_id: int, db: AsyncSession, mux: MuxService) -> None:
    """
    Delete a lesson and its view counters, remote video first.

    Raises:
        LessonNotFound: 404 if the lesson does not exist.
        VideoDeletionFailed: 502 if the remote asset could not be deleted.
    """
    lesson = await lesson_service.get_lesson(lesson_id, db)

    await delete_lesson_video(lesson, mux)

    await db.delete(lesson)
    await db.commit()
    logger.info("Deleted lesson %s", lesson_id)

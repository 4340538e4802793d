"""
Coursehall Backend - Schemas Module

Pydantic models for request/response validation.
"""

from coursehall.schemas.events import LessonUpdateData, LessonUpdatedEvent
from coursehall.schemas.lesson import (
    Attachment,
    AttachmentResponse,
    LessonCreate,
    LessonDetailResponse,
    LessonResponse,
    LessonVideoStatus,
    SignedUrlsResponse,
    UploadUrlResponse,
    Watermark,
)
from coursehall.schemas.views import (
    RecentLessonResponse,
    VideoViewRecord,
    ViewAttempt,
    ViewAttemptResponse,
    ViewLimitOverride,
    ViewStatusResponse,
)
from coursehall.schemas.webhook import MuxWebhookEvent, mux_webhook_adapter

__all__ = [
    # Lesson
    "Attachment",
    "AttachmentResponse",
    "LessonCreate",
    "LessonDetailResponse",
    "LessonResponse",
    "LessonVideoStatus",
    "SignedUrlsResponse",
    "UploadUrlResponse",
    "Watermark",
    # Views
    "RecentLessonResponse",
    "VideoViewRecord",
    "ViewAttempt",
    "ViewAttemptResponse",
    "ViewLimitOverride",
    "ViewStatusResponse",
    # Webhooks
    "MuxWebhookEvent",
    "mux_webhook_adapter",
    # Live updates
    "LessonUpdateData",
    "LessonUpdatedEvent",
]

"""
Lesson Schemas

Pydantic models for lesson playback, admin video management and the
lesson-create request.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from coursehall.models.enums import LessonType, MuxStatus
from coursehall.schemas.views import ViewStatusResponse


# ============== Shared ==============

class Attachment(BaseModel):
    """Stored lesson attachment."""

    url: str
    name: str
    type: str


class AttachmentResponse(Attachment):
    """Attachment with a time-limited download URL."""

    download_url: str


class Watermark(BaseModel):
    """Overlay text drawn over the player to discourage screen recording."""

    text: str
    phone: Optional[str] = None
    timestamp: datetime


# ============== Admin ==============

class LessonCreate(BaseModel):
    """Schema for creating a lesson inside a chapter."""

    title: str = Field(..., min_length=1, max_length=500)
    type: LessonType = LessonType.VIDEO
    description: Optional[str] = None
    view_limit: int = Field(default=2, ge=1)
    is_free: bool = False
    sort_order: Optional[int] = None
    attachments: Optional[List[Attachment]] = None


class LessonResponse(BaseModel):
    """Schema for an admin lesson view."""

    id: int
    chapter_id: int
    title: str
    type: LessonType
    description: Optional[str] = None
    mux_status: MuxStatus
    mux_playback_id: Optional[str] = None
    duration: Optional[int] = None
    view_limit: int
    is_free: bool
    sort_order: int
    attachments: Optional[List[Attachment]] = None

    model_config = {"from_attributes": True}


class UploadUrlResponse(BaseModel):
    """Direct upload destination for a lesson video."""

    upload_url: str
    upload_id: str


class SignedUrlsResponse(BaseModel):
    """Admin preview URLs for a lesson video."""

    playback_id: str
    playback_token: Optional[str] = None
    thumbnail_url: str
    playback_url: Optional[str] = None


class LessonVideoStatus(BaseModel):
    """Current video fields of a lesson, polled after an upload."""

    id: int
    mux_status: MuxStatus
    mux_upload_id: Optional[str] = None
    mux_asset_id: Optional[str] = None
    playback_id: Optional[str] = None
    duration: Optional[int] = None


# ============== Student ==============

class ChapterRef(BaseModel):
    id: int
    title: str


class CourseRef(BaseModel):
    id: int
    title: str
    slug: str


class LessonDetailResponse(BaseModel):
    """
    Schema for a lesson opened in the student player.

    ``playback_id`` and ``signed_url`` are null when the quota is used up
    or the video is still processing.
    """

    id: int
    title: str
    type: LessonType
    description: Optional[str] = None
    duration: Optional[int] = None
    is_free: bool
    mux_status: MuxStatus
    can_watch: bool
    playback_id: Optional[str] = None
    signed_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    view_status: ViewStatusResponse
    attachments: List[AttachmentResponse] = []
    watermark: Watermark
    chapter: ChapterRef
    course: CourseRef

"""
View Schemas

Pydantic models for view-limit status, view attempts and admin overrides.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from coursehall.services.view_service import ViewAttemptResult, ViewStatus

# Admins are unlimited internally; clients get this number instead
UNLIMITED_SENTINEL = 999


def serialize_limit(value: Optional[int]) -> int:
    """Replace the internal "no limit" marker with the display sentinel."""
    return UNLIMITED_SENTINEL if value is None else value


class ViewStatusResponse(BaseModel):
    """Schema for a user's view quota on a lesson."""

    lesson_id: int
    view_count: int
    effective_limit: int
    can_watch: bool
    remaining_views: int

    @classmethod
    def from_status(cls, view_status: ViewStatus) -> "ViewStatusResponse":
        return cls(
            lesson_id=view_status.lesson_id,
            view_count=view_status.view_count,
            effective_limit=serialize_limit(view_status.limit),
            can_watch=view_status.can_watch,
            remaining_views=serialize_limit(view_status.remaining_views),
        )


class ViewAttempt(BaseModel):
    """Schema for reporting playback progress."""

    watch_percentage: float = Field(
        ...,
        ge=0,
        le=100,
        description="Share of the video watched in this session (0-100)",
    )


class ViewAttemptResponse(ViewStatusResponse):
    """
    Schema for the result of a view attempt.

    A reached limit is reported here with ``limit_reached`` set, not as
    an error status.
    """

    counted: bool
    limit_reached: bool
    message: Optional[str] = None

    @classmethod
    def from_result(cls, result: ViewAttemptResult) -> "ViewAttemptResponse":
        base = ViewStatusResponse.from_status(result.status)
        return cls(
            **base.model_dump(),
            counted=result.counted,
            limit_reached=result.limit_reached,
            message="View limit reached for this lesson" if result.limit_reached else None,
        )


class ViewLimitOverride(BaseModel):
    """Schema for setting a per-user view limit. Zero blocks viewing."""

    limit: int = Field(..., ge=0, description="Custom view limit for this user")


class VideoViewRecord(BaseModel):
    """Schema for a stored view counter (admin user detail)."""

    lesson_id: int
    lesson_title: str
    view_count: int
    custom_view_limit: Optional[int] = None
    lesson_view_limit: int
    last_viewed_at: Optional[datetime] = None


class RecentLessonResponse(BaseModel):
    """Schema for a recently watched lesson."""

    lesson_id: int
    title: str
    duration: Optional[int] = None
    course_id: int
    course_title: str
    course_slug: str
    view_count: int
    last_viewed_at: datetime

"""
Lesson Model

A single content unit (video, pdf or text) within a chapter, carrying the
Mux video lifecycle fields.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehall.core.database import Base
from coursehall.models.enums import LessonType, MuxStatus, enum_values

if TYPE_CHECKING:
    from coursehall.models.course import Chapter
    from coursehall.models.video_view import VideoView


DEFAULT_VIEW_LIMIT = 2


class Lesson(Base):
    """
    Lesson model.

    The Mux identifiers advance upload -> asset -> playback. Provider
    webhooks locate lessons by ``mux_upload_id`` / ``mux_asset_id``, so
    replacing a video must clear them before a new upload starts.

    Attributes:
        id: Integer primary key.
        chapter_id: Foreign key to chapters table.
        type: video, pdf or text.
        mux_upload_id: Direct upload session id (set on upload start).
        mux_asset_id: Asset id (set by the asset_created webhook).
        mux_playback_id: Playback id (set by the asset.ready webhook).
        mux_status: pending, ready or error.
        duration: Video duration in whole seconds.
        view_limit: Default number of completed views per student.
        is_free: Free preview lessons skip the enrollment check.
        attachments: List of {url, name, type} dicts.
    """

    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    chapter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    type: Mapped[LessonType] = mapped_column(
        Enum(
            LessonType,
            name="lesson_type",
            create_constraint=True,
            values_callable=enum_values,
        ),
        default=LessonType.VIDEO,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    mux_upload_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        index=True,
        nullable=True,
    )
    mux_asset_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        index=True,
        nullable=True,
    )
    mux_playback_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    mux_status: Mapped[MuxStatus] = mapped_column(
        Enum(
            MuxStatus,
            name="mux_status",
            create_constraint=True,
            values_callable=enum_values,
        ),
        default=MuxStatus.READY,
        nullable=False,
    )
    duration: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    view_limit: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_VIEW_LIMIT,
        nullable=False,
    )
    is_free: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    attachments: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    chapter: Mapped["Chapter"] = relationship(
        "Chapter",
        back_populates="lessons",
    )
    video_views: Mapped[list["VideoView"]] = relationship(
        "VideoView",
        back_populates="lesson",
        cascade="all, delete-orphan",
    )

    @property
    def is_video(self) -> bool:
        return self.type == LessonType.VIDEO

    def __repr__(self) -> str:
        return f"<Lesson(id={self.id}, type={self.type}, mux_status={self.mux_status})>"

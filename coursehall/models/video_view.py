"""
Video View Model

Per (user, lesson) completed-view counter with an optional admin override.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehall.core.database import Base

if TYPE_CHECKING:
    from coursehall.models.lesson import Lesson
    from coursehall.models.user import User


class VideoView(Base):
    """
    Video view model.

    Unique constraint ensures one counter per user per lesson.

    Attributes:
        id: Integer primary key.
        user_id: Foreign key to users table.
        lesson_id: Foreign key to lessons table.
        view_count: Completed views consumed so far.
        custom_view_limit: Admin override; supersedes lesson.view_limit when set.
        last_viewed_at: Last playback attempt, counted or not.
    """

    __tablename__ = "video_views"

    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_video_view_user_lesson"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    lesson_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
    )
    view_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    custom_view_limit: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    last_viewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="video_views",
    )
    lesson: Mapped["Lesson"] = relationship(
        "Lesson",
        back_populates="video_views",
    )

    def __repr__(self) -> str:
        return f"<VideoView(user_id={self.user_id}, lesson_id={self.lesson_id}, count={self.view_count})>"

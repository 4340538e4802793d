"""
User Model

Account record owned by the authentication service. Only the columns the
video engine reads are mapped here.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehall.core.database import Base
from coursehall.models.enums import UserRole

if TYPE_CHECKING:
    from coursehall.models.enrollment import Enrollment
    from coursehall.models.video_view import VideoView


class User(Base):
    """
    User model representing students and admins.

    Attributes:
        id: Integer primary key.
        email: Unique email address.
        full_name: Display name.
        phone: Phone number, shown in the playback watermark.
        role: STUDENT or ADMIN.
        created_at: Account creation timestamp.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", create_constraint=True),
        default=UserRole.STUDENT,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    video_views: Mapped[list["VideoView"]] = relationship(
        "VideoView",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

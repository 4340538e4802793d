"""
Coursehall Backend - Models Module

This module exports all SQLAlchemy models for the application.
Import Base for Alembic migrations.
"""

from coursehall.core.database import Base

# Enums
from coursehall.models.enums import (
    UserRole,
    LessonType,
    MuxStatus,
)

# Models
from coursehall.models.user import User
from coursehall.models.course import Course, Chapter
from coursehall.models.lesson import Lesson
from coursehall.models.enrollment import Enrollment
from coursehall.models.video_view import VideoView

__all__ = [
    # Base
    "Base",
    # Enums
    "UserRole",
    "LessonType",
    "MuxStatus",
    # Models
    "User",
    "Course",
    "Chapter",
    "Lesson",
    "Enrollment",
    "VideoView",
]

"""
Database Enums

Python Enums that map to PostgreSQL ENUM types.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class LessonType(str, enum.Enum):
    """Lesson content type."""
    VIDEO = "video"
    PDF = "pdf"
    TEXT = "text"


class MuxStatus(str, enum.Enum):
    """Video processing status of a lesson."""
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Store enum values (not member names) in the database."""
    return [member.value for member in enum_cls]

"""
Live Update Event Schemas

Messages pushed to admin course editors over server-sent events.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from coursehall.models.enums import MuxStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LessonUpdateData(_CamelModel):
    mux_status: MuxStatus
    playback_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None


class LessonUpdatedEvent(_CamelModel):
    """``lesson:updated`` event, the only event the video engine emits."""

    type: Literal["lesson:updated"] = "lesson:updated"
    lesson_id: int
    course_id: int
    data: LessonUpdateData

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
